from __future__ import annotations
"""server/cnc_telemetry/application/services/distribution_engine.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Moteur de distribution : persistance puis push live d'un MachineRecord.

Étapes de distribute(record) :
    1) écriture de tous les axes via SampleRepository (threadpool : la boucle
       asyncio n'est jamais bloquée par la base) ;
    2) lecture des abonnés de la machine dans le SubscriptionRegistry ;
    3) offer() du payload à chaque canal (non bloquant).

Ordre garanti : la persistance est terminée AVANT le premier push, un client
qui interroge l'historique juste après une mise à jour live la voit donc.
Si la persistance échoue, rien n'est poussé (le live et le stocké doivent être
identiques). Un push en échec est loggué, jamais retenté ni remonté.
"""
import logging
from dataclasses import dataclass
from typing import Callable, ContextManager, Iterable

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cnc_telemetry.application.services.subscription_registry import SubscriptionRegistry
from cnc_telemetry.domain.errors import DeliveryError, StorageError, ValidationError
from cnc_telemetry.domain.telemetry import MachineRecord
from cnc_telemetry.infrastructure.persistence.database.session import get_sync_session
from cnc_telemetry.infrastructure.persistence.repositories.sample_repository import SampleRepository

logger = logging.getLogger(__name__)


@dataclass
class DistributionReport:
    machine_id: str
    persisted: bool = False
    rows: int = 0
    delivered: int = 0
    failed: int = 0


class DistributionEngine:
    def __init__(
        self,
        registry: SubscriptionRegistry,
        session_factory: Callable[[], ContextManager[Session]] = get_sync_session,
    ) -> None:
        self.registry = registry
        self._session_factory = session_factory

    def persist(self, record: MachineRecord) -> int:
        with self._session_factory() as session:
            return SampleRepository(session).append_record(record)

    async def distribute(self, record: MachineRecord) -> DistributionReport:
        report = DistributionReport(machine_id=record.machine_id)

        try:
            report.rows = await run_in_threadpool(self.persist, record)
            report.persisted = True
        except (StorageError, ValidationError) as exc:
            logger.error(
                "distribution.persist_failed",
                extra={"machine_id": record.machine_id, "error": str(exc)},
            )
            return report

        payload = record.to_payload()
        for channel in self.registry.subscribers_of(record.machine_id):
            try:
                channel.offer(payload)
                report.delivered += 1
            except DeliveryError as exc:
                report.failed += 1
                logger.warning(
                    "distribution.push_failed",
                    extra={"machine_id": record.machine_id, "connection_id": exc.connection_id, "reason": exc.reason},
                )
            except Exception:
                report.failed += 1
                logger.exception(
                    "distribution.push_failed",
                    extra={"machine_id": record.machine_id, "connection_id": getattr(channel, "connection_id", None)},
                )
        return report

    async def distribute_many(self, records: Iterable[MachineRecord]) -> list[DistributionReport]:
        """Une machine en échec n'interrompt pas les suivantes."""
        reports: list[DistributionReport] = []
        for record in records:
            try:
                reports.append(await self.distribute(record))
            except Exception:
                logger.exception("distribution.failed", extra={"machine_id": record.machine_id})
                reports.append(DistributionReport(machine_id=record.machine_id))
        return reports
