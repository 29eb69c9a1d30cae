from __future__ import annotations
"""
server/cnc_telemetry/api/deps.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Dépendances communes côté API.

- get_runtime : objets process (registre, moteur) posés sur app.state au
  démarrage, pour les routes HTTP comme pour le WebSocket.
"""

from starlette.requests import HTTPConnection

from cnc_telemetry.application.runtime import TelemetryRuntime


def get_runtime(conn: HTTPConnection) -> TelemetryRuntime:
    return conn.app.state.runtime
