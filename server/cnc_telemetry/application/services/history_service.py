from __future__ import annotations
"""server/cnc_telemetry/application/services/history_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Vue historique : lectures d'une machine sur une fenêtre glissante (15 min
par défaut), regroupées par horodatage exact.

Chaque entrée : {timestamp, machineId, machineName, axes: {axe -> valeurs}}.
L'ordre est celui de la première occurrence (horodatages croissants).
machineName est résolu au moment de la requête (nom courant).
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cnc_telemetry.core.config import settings
from cnc_telemetry.core.utils.datetime import as_utc
from cnc_telemetry.domain.errors import NotFoundError, StorageError
from cnc_telemetry.domain.telemetry import AxisReading, MachineRecord
from cnc_telemetry.infrastructure.persistence.database.models.machine_sample import MachineSample
from cnc_telemetry.infrastructure.persistence.repositories.machine_repository import MachineRepository
from cnc_telemetry.infrastructure.persistence.repositories.sample_repository import SampleRepository


def group_samples(samples: Iterable[MachineSample], machine_id: str, machine_name: str) -> list[MachineRecord]:
    """Regroupe des lignes triées par ts en un MachineRecord par horodatage."""
    grouped: dict[datetime, dict[str, AxisReading]] = {}
    for s in samples:
        axes = grouped.setdefault(as_utc(s.ts), {})
        axes[s.axis] = AxisReading(tool_offset=s.tool_offset, feedrate=s.feedrate, tool_in_use=s.tool_in_use)
    return [
        MachineRecord(machine_id=machine_id, machine_name=machine_name, timestamp=ts, axes=axes)
        for ts, axes in grouped.items()
    ]


def get_historical_records(
    session: Session,
    machine_id: str,
    window: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> list[MachineRecord]:
    try:
        machine = MachineRepository(session).get(machine_id)
    except SQLAlchemyError as exc:
        raise StorageError(f"Unable to look up machine {machine_id}: {exc}") from exc
    if machine is None:
        raise NotFoundError(machine_id)
    end = as_utc(now) if now else datetime.now(timezone.utc)
    start = end - (window if window is not None else timedelta(minutes=settings.HISTORY_WINDOW_MINUTES))
    samples = SampleRepository(session).query_range(machine_id, start, end)
    return group_samples(samples, machine.machine_id, machine.machine_name)


def get_historical_data(
    session: Session,
    machine_id: str,
    window: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """Forme JSON renvoyée par GET /historical-data (liste vide si rien dans la fenêtre)."""
    return [r.to_payload() for r in get_historical_records(session, machine_id, window, now)]
