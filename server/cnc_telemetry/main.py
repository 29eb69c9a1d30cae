from __future__ import annotations
"""server/cnc_telemetry/main.py
~~~~~~~~~~~~~~~~~~~~~~~~
Point d'entrée FastAPI.
"""
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cnc_telemetry.api.v1.router import api_router
from cnc_telemetry.application.runtime import TelemetryRuntime
from cnc_telemetry.application.services.machine_service import seed_demo_machines
from cnc_telemetry.core.config import settings
from cnc_telemetry.core.logging import setup_logging
from cnc_telemetry.infrastructure.persistence.database.base import Base
from cnc_telemetry.infrastructure.persistence.database.session import get_sync_session, init_engine

app = FastAPI(title="CNC Telemetry Server", version="0.1.0")
app.state.runtime = TelemetryRuntime(settings)

allow_origins: List[str] = []
if origins := getattr(settings, "CORS_ALLOW_ORIGINS", None):
    allow_origins = [o.strip() for o in origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup() -> None:
    setup_logging()
    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=init_engine())
    if settings.SEED_DEMO_MACHINES > 0:
        with get_sync_session() as session:
            seed_demo_machines(session, settings.SEED_DEMO_MACHINES, settings.SEED_TOOL_CAPACITY)
    app.state.runtime.start()

@app.on_event("shutdown")
async def shutdown() -> None:
    await app.state.runtime.stop()

app.include_router(api_router, prefix="/api/v1")
