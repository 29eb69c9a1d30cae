from __future__ import annotations
"""server/cnc_telemetry/workers/tasks/generation_tasks.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Génération + distribution : une machine, ou tout le parc.

Appelé :
- par les cadences périodiques (workers.scheduler), sans machine ;
- par POST /machines, pour la seule machine créée.
"""
import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from cnc_telemetry.application.services.distribution_engine import DistributionEngine, DistributionReport
from cnc_telemetry.application.services.machine_service import list_machine_refs
from cnc_telemetry.application.services.sample_generator import generate
from cnc_telemetry.domain.telemetry import MachineRef
from cnc_telemetry.infrastructure.persistence.database.session import get_sync_session

logger = logging.getLogger(__name__)


def load_targets(machine_id: Optional[str] = None) -> list[MachineRef]:
    with get_sync_session() as session:
        return list_machine_refs(session, machine_id)


async def run_generation(
    engine: DistributionEngine,
    machine_id: Optional[str] = None,
    machines: Optional[list[MachineRef]] = None,
) -> list[DistributionReport]:
    """Génère un record par machine ciblée puis le confie au moteur (une unité par machine)."""
    targets = machines if machines is not None else await run_in_threadpool(load_targets, machine_id)
    records = generate(targets)
    reports = await engine.distribute_many(records)
    logger.info(
        "generation.tick",
        extra={
            "machines": len(targets),
            "persisted": sum(1 for r in reports if r.persisted),
            "pushed": sum(r.delivered for r in reports),
        },
    )
    return reports
