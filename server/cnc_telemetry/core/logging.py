from __future__ import annotations
"""server/cnc_telemetry/core/logging.py
~~~~~~~~~~~~~~~~~~~~~~~~
Configuration logs.
"""
import logging


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    # uvicorn loggue déjà chaque frame WebSocket en DEBUG ; on garde le bruit bas
    logging.getLogger("websockets").setLevel(logging.WARNING)
