from __future__ import annotations
"""server/cnc_telemetry/api/v1/router.py
~~~~~~~~~~~~~~~~~~~~~~~~
Router principal API v1.
"""
from fastapi import APIRouter
from cnc_telemetry.api.v1.endpoints import health, history, live, machines



api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(machines.router, tags=["machines"])
api_router.include_router(history.router, tags=["history"])
api_router.include_router(live.router, tags=["live"])
