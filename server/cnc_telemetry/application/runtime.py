from __future__ import annotations
"""server/cnc_telemetry/application/runtime.py
~~~~~~~~~~~~~~~~~~~~~~~~
Objets à durée de vie du process : registre d'abonnements, moteur de
distribution, cadences de génération.

Construit une fois (app.state.runtime), démarré / arrêté par les événements
startup / shutdown de FastAPI. Aucun état global ambiant.
"""
import logging
from typing import Optional

from cnc_telemetry.application.services.distribution_engine import DistributionEngine, DistributionReport
from cnc_telemetry.application.services.subscription_registry import SubscriptionRegistry
from cnc_telemetry.core.config import Settings
from cnc_telemetry.workers.scheduler.beat_schedule import GENERATE_TASK, build_beat_schedule
from cnc_telemetry.workers.scheduler.periodic import PeriodicScheduler
from cnc_telemetry.workers.tasks.generation_tasks import run_generation

logger = logging.getLogger(__name__)


class TelemetryRuntime:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.registry = SubscriptionRegistry()
        self.engine = DistributionEngine(self.registry)
        self.scheduler: Optional[PeriodicScheduler] = None

    async def generate(self, machine_id: Optional[str] = None) -> list[DistributionReport]:
        return await run_generation(self.engine, machine_id)

    def start(self) -> None:
        if not self.settings.GENERATOR_ENABLED:
            logger.info("runtime.generator_disabled")
            return
        self.scheduler = PeriodicScheduler(
            build_beat_schedule(self.settings),
            {GENERATE_TASK: self.generate},
        )
        self.scheduler.start()

    async def stop(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()
            self.scheduler = None
