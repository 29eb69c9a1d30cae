from __future__ import annotations
"""server/cnc_telemetry/infrastructure/live/connection.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Canal live d'une connexion WebSocket.

- offer() dépose le payload dans une file bornée SANS attendre : un client
  lent ne remplit que sa propre file, jamais la génération ni les autres.
- run_sender() (une tâche par connexion) vide la file vers le socket, avec un
  délai max par envoi ; au premier échec la connexion est fermée (socket compris).
- offer() est thread-safe : hors de la boucle du socket, on passe par
  call_soon_threadsafe.
"""
import asyncio
import logging
import uuid
from typing import Any, Optional

from starlette import status
from starlette.websockets import WebSocket

from cnc_telemetry.domain.errors import DeliveryError

logger = logging.getLogger(__name__)

_CLOSE = object()


class WebSocketChannel:
    def __init__(
        self,
        websocket: WebSocket,
        *,
        queue_size: int = 100,
        send_timeout: float = 5.0,
        connection_id: Optional[str] = None,
    ) -> None:
        self.connection_id = connection_id or uuid.uuid4().hex
        self.websocket = websocket
        self.send_timeout = send_timeout
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, payload: dict[str, Any]) -> None:
        if self._closed:
            raise DeliveryError(self.connection_id, "connection closed")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._put(payload)
        else:
            self._loop.call_soon_threadsafe(self._put_logged, payload)

    def _put(self, payload: Any) -> None:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            raise DeliveryError(self.connection_id, "queue full (slow consumer)") from None

    def _put_logged(self, payload: Any) -> None:
        # appelé dans la boucle du socket : personne pour attraper l'erreur
        try:
            self._put(payload)
        except DeliveryError as exc:
            logger.warning("live.push_dropped", extra={"connection_id": self.connection_id, "reason": exc.reason})

    async def run_sender(self) -> None:
        while True:
            item = await self._queue.get()
            if item is _CLOSE:
                return
            try:
                await asyncio.wait_for(self.websocket.send_json(item), timeout=self.send_timeout)
            except Exception as exc:
                self._closed = True
                logger.warning(
                    "live.send_failed",
                    extra={"connection_id": self.connection_id, "reason": repr(exc)},
                )
                await self._abort()
                return

    async def _abort(self) -> None:
        """Ferme le socket : le handler sort de receive_json et désinscrit la connexion."""
        try:
            await asyncio.wait_for(
                self.websocket.close(code=status.WS_1011_INTERNAL_ERROR),
                timeout=self.send_timeout,
            )
        except Exception as exc:
            logger.info("live.close_failed", extra={"connection_id": self.connection_id, "reason": repr(exc)})

    def close(self) -> None:
        """Arrête le sender après les messages déjà en file."""
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # file pleine : le sender est annulé par l'endpoint
            pass
