from __future__ import annotations

"""server/cnc_telemetry/infrastructure/persistence/repositories/machine_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Repository pour les entités Machine.
- Le repo **reçoit** une Session SQLAlchemy fournie par l'appelant
  (endpoint via Depends(get_db) ou tâche/service via get_sync_session()).
- Il ne crée ni ne ferme la session : responsabilité de l'appelant.
"""

from typing import Iterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from cnc_telemetry.infrastructure.persistence.database.models.machine import Machine
from cnc_telemetry.infrastructure.persistence.database.models.machine_sample import MachineSample

MACHINE_ID_PREFIX = "M"
MACHINE_ID_DIGITS = 8


def format_machine_id(n: int) -> str:
    """7 -> "M00000007" """
    return f"{MACHINE_ID_PREFIX}{n:0{MACHINE_ID_DIGITS}d}"


class MachineRepository:
    """Accès de haut niveau aux Machines."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, machine_id: str) -> Optional[Machine]:
        return self.db.get(Machine, machine_id)

    def exists(self, machine_id: str) -> bool:
        stmt = select(Machine.machine_id).where(Machine.machine_id == machine_id)
        return self.db.scalar(stmt) is not None

    def count(self) -> int:
        return int(self.db.scalar(select(func.count()).select_from(Machine)) or 0)

    def next_machine_id(self) -> str:
        """
        Identifiant suivant = nombre de machines + 1. Après une suppression ce
        numéro peut déjà être pris : on avance alors jusqu'au premier libre.
        """
        n = self.count() + 1
        while self.exists(format_machine_id(n)):
            n += 1
        return format_machine_id(n)

    def create(self, machine_id: str, machine_name: str, tool_capacity: int) -> Machine:
        """
        Crée une Machine **sans commit** (l'appelant décide du commit/rollback).
        """
        m = Machine(machine_id=machine_id, machine_name=machine_name, tool_capacity=tool_capacity)
        self.db.add(m)
        self.db.flush()
        return m

    def list_all(self) -> list[Machine]:
        """Toutes les machines, dans l'ordre de création."""
        stmt = select(Machine).order_by(Machine.created_at, Machine.machine_id)
        return list(self.db.scalars(stmt).all())

    def iter_all(self) -> Iterator[Machine]:
        """Itère sur toutes les machines (streaming par défaut côté SQLAlchemy)."""
        stmt = select(Machine).order_by(Machine.created_at, Machine.machine_id)
        for m in self.db.scalars(stmt):
            yield m

    def delete(self, machine: Machine) -> None:
        """
        Supprime la machine et ses échantillons **sans commit**.
        Les samples sont supprimés explicitement : le CASCADE SQL dépend du
        backend (pragma foreign_keys en SQLite).
        """
        self.db.execute(delete(MachineSample).where(MachineSample.machine_id == machine.machine_id))
        self.db.delete(machine)
        self.db.flush()
