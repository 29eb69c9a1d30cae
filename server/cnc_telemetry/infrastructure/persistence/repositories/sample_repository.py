from __future__ import annotations
"""server/cnc_telemetry/infrastructure/persistence/repositories/sample_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~
Repo samples : stockage append-only des lectures par axe.

- append()        : une lecture (un axe), commit immédiat
- append_record() : toutes les lectures d'un MachineRecord en UNE transaction
- query_range()   : lectures d'une machine sur [start, end] (bornes incluses),
                    triées par horodatage croissant puis ordre d'insertion

Les erreurs SQLAlchemy sont remontées en StorageError ; une machine inconnue
en ValidationError (écriture) ou NotFoundError (lecture).
"""
from datetime import datetime

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cnc_telemetry.core.utils.datetime import as_utc
from cnc_telemetry.domain.errors import NotFoundError, StorageError, ValidationError
from cnc_telemetry.domain.telemetry import AXES, MachineRecord, is_valid_axis
from cnc_telemetry.infrastructure.persistence.database.models.machine import Machine
from cnc_telemetry.infrastructure.persistence.database.models.machine_sample import MachineSample


class SampleRepository:
    def __init__(self, session: Session):
        self.s = session

    def _machine_exists(self, machine_id: str) -> bool:
        try:
            return self.s.scalar(select(Machine.machine_id).where(Machine.machine_id == machine_id)) is not None
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to look up machine {machine_id}: {exc}") from exc

    def _check_machine(self, machine_id: str) -> None:
        if not machine_id or not self._machine_exists(machine_id):
            raise ValidationError(f"Unknown machine reference: {machine_id!r}")

    def _commit(self, rows: list[dict]) -> None:
        try:
            self.s.execute(insert(MachineSample), rows)
            self.s.commit()
        except SQLAlchemyError as exc:
            self.s.rollback()
            raise StorageError(f"Unable to persist {len(rows)} sample(s): {exc}") from exc

    def append(
        self,
        machine_id: str,
        axis: str,
        tool_offset: float,
        feedrate: int,
        tool_in_use: int,
        timestamp: datetime,
    ) -> None:
        if not is_valid_axis(axis):
            raise ValidationError(f"Invalid axis {axis!r} (expected one of {', '.join(AXES)})")
        self._check_machine(machine_id)
        self._commit([
            {
                "machine_id": machine_id,
                "axis": axis,
                "tool_offset": float(tool_offset),
                "feedrate": int(feedrate),
                "tool_in_use": int(tool_in_use),
                "ts": as_utc(timestamp),
            }
        ])

    def append_record(self, record: MachineRecord) -> int:
        """Persiste chaque axe du record ; retourne le nombre de lignes écrites."""
        bad = [axis for axis in record.axes if not is_valid_axis(axis)]
        if bad:
            raise ValidationError(f"Invalid axis {bad[0]!r} (expected one of {', '.join(AXES)})")
        self._check_machine(record.machine_id)
        ts = as_utc(record.timestamp)
        rows = [
            {
                "machine_id": record.machine_id,
                "axis": axis,
                "tool_offset": float(r.tool_offset),
                "feedrate": int(r.feedrate),
                "tool_in_use": int(r.tool_in_use),
                "ts": ts,
            }
            for axis, r in record.axes.items()
        ]
        if rows:
            self._commit(rows)
        return len(rows)

    def query_range(self, machine_id: str, start: datetime, end: datetime) -> list[MachineSample]:
        if not self._machine_exists(machine_id):
            raise NotFoundError(machine_id)
        stmt = (
            select(MachineSample)
            .where(
                MachineSample.machine_id == machine_id,
                MachineSample.ts >= as_utc(start),
                MachineSample.ts <= as_utc(end),
            )
            .order_by(MachineSample.ts.asc(), MachineSample.id.asc())
        )
        try:
            return list(self.s.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to read samples of {machine_id}: {exc}") from exc
