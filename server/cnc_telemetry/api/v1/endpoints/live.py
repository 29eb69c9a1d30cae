from __future__ import annotations
"""server/cnc_telemetry/api/v1/endpoints/live.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
WS /live : canal temps réel.

Messages client (JSON) :
    {"action": "subscribe",   "machineId": "M00000001"}
    {"action": "unsubscribe", "machineId": "M00000001"}

Réponses serveur :
    {"event": "subscribed" | "unsubscribed", "machineId": ...}
    {"event": "error", "detail": ...}
    push : {"machineId", "machineName", "timestamp", "axes": {...}}

Le rôle est lu dans le header de rôle (ou ?role= pour les navigateurs, qui ne
peuvent pas poser de header sur un WebSocket). Sans capacité SUBSCRIBE_LIVE :
fermeture 1008 avant accept.
"""
import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from cnc_telemetry.api.deps import get_runtime
from cnc_telemetry.core.config import settings
from cnc_telemetry.core.security import role_from_headers
from cnc_telemetry.domain.errors import DeliveryError
from cnc_telemetry.domain.policies import Operation, is_permitted, parse_role
from cnc_telemetry.infrastructure.live.connection import WebSocketChannel

logger = logging.getLogger(__name__)

router = APIRouter()


def _reply(channel: WebSocketChannel, message: dict[str, Any]) -> None:
    try:
        channel.offer(message)
    except DeliveryError as exc:
        logger.warning("live.reply_dropped", extra={"connection_id": exc.connection_id, "reason": exc.reason})


@router.websocket("/live")
async def live(websocket: WebSocket) -> None:
    _raw, role = role_from_headers(websocket.headers)
    if role is None:
        role = parse_role(websocket.query_params.get("role"))
    if not is_permitted(role, Operation.SUBSCRIBE_LIVE):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    runtime = get_runtime(websocket)
    channel = WebSocketChannel(
        websocket,
        queue_size=settings.LIVE_QUEUE_SIZE,
        send_timeout=settings.LIVE_SEND_TIMEOUT_SECONDS,
    )
    registry = runtime.registry
    registry.register(channel)
    sender = asyncio.create_task(channel.run_sender())
    logger.info("live.connected", extra={"connection_id": channel.connection_id, "role": role.value})

    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                _reply(channel, {"event": "error", "detail": "expected a JSON object"})
                continue
            action = message.get("action")
            machine_id = message.get("machineId")
            if not isinstance(machine_id, str) or not machine_id:
                _reply(channel, {"event": "error", "detail": "machineId is required"})
                continue

            if action == "subscribe":
                if registry.subscribe(channel.connection_id, machine_id):
                    _reply(channel, {"event": "subscribed", "machineId": machine_id})
            elif action == "unsubscribe":
                registry.unsubscribe(channel.connection_id, machine_id)
                _reply(channel, {"event": "unsubscribed", "machineId": machine_id})
            else:
                _reply(channel, {"event": "error", "detail": f"unknown action {action!r}"})
    except WebSocketDisconnect:
        pass
    except RuntimeError:
        # socket fermé par le sender (envoi en échec) entre deux receive_json
        if not channel.closed:
            raise
    except ValueError:
        # receive_json sur un texte non JSON : on coupe
        logger.info("live.invalid_frame", extra={"connection_id": channel.connection_id})
    finally:
        registry.on_disconnect(channel.connection_id)
        channel.close()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        logger.info("live.closed", extra={"connection_id": channel.connection_id})
