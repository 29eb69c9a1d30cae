from __future__ import annotations
"""server/cnc_telemetry/application/services/machine_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Gestion du parc de machines (create / list / update / delete / seed).

Les endpoints fournissent la Session (Depends(get_db)) ; ce service commit.
La génération initiale d'une machine créée est déclenchée par l'appelant
(endpoint) via le moteur de distribution : ce module reste synchrone.
"""
import logging
import threading
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cnc_telemetry.domain.errors import NotFoundError, ValidationError
from cnc_telemetry.domain.policies import Role, strip_privileged_fields
from cnc_telemetry.domain.telemetry import MachineRef
from cnc_telemetry.infrastructure.persistence.database.models.machine import Machine
from cnc_telemetry.infrastructure.persistence.repositories.machine_repository import MachineRepository

logger = logging.getLogger(__name__)

# count()+1 puis insert : deux créations concurrentes obtiendraient le même id
_create_lock = threading.Lock()


def to_ref(m: Machine) -> MachineRef:
    return MachineRef(machine_id=m.machine_id, machine_name=m.machine_name, tool_capacity=m.tool_capacity)


def _validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("machineName is required")
    return name.strip()


def _validate_capacity(capacity: Any) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise ValidationError("toolCapacity must be a positive integer")
    return capacity


def create_machine(session: Session, machine_name: str, tool_capacity: int) -> Machine:
    name = _validate_name(machine_name)
    capacity = _validate_capacity(tool_capacity)
    with _create_lock:
        repo = MachineRepository(session)
        try:
            m = repo.create(repo.next_machine_id(), name, capacity)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ValidationError(f"Unable to allocate a machine id: {exc.orig}") from exc
    logger.info("machine.created", extra={"machine_id": m.machine_id, "tool_capacity": capacity})
    return m


def list_machines(session: Session) -> list[Machine]:
    return MachineRepository(session).list_all()


def list_machine_refs(session: Session, machine_id: Optional[str] = None) -> list[MachineRef]:
    """Cibles de génération : une machine (si machine_id) ou tout le parc."""
    repo = MachineRepository(session)
    if machine_id is None:
        return [to_ref(m) for m in repo.iter_all()]
    m = repo.get(machine_id)
    return [to_ref(m)] if m else []


def get_machine(session: Session, machine_id: str) -> Machine:
    m = MachineRepository(session).get(machine_id)
    if m is None:
        raise NotFoundError(machine_id)
    return m


def update_machine(session: Session, machine_id: str, fields: Mapping[str, Any], role: Optional[Role]) -> Machine:
    """
    Update partiel. Pour un rôle sans SET_TOOL_IN_USE, toolInUse est retiré
    silencieusement (pas de 403). Les champs inconnus sont ignorés.
    """
    m = get_machine(session, machine_id)
    allowed = strip_privileged_fields(role, fields)
    if "toolInUse" in fields and "toolInUse" not in allowed:
        logger.info("machine.update.dropped_field", extra={"machine_id": machine_id, "field": "toolInUse"})

    if allowed.get("machineName") is not None:
        m.machine_name = _validate_name(allowed["machineName"])
    if allowed.get("toolCapacity") is not None:
        m.tool_capacity = _validate_capacity(allowed["toolCapacity"])
    session.commit()
    return m


def delete_machine(session: Session, machine_id: str) -> None:
    repo = MachineRepository(session)
    m = repo.get(machine_id)
    if m is None:
        raise NotFoundError(machine_id)
    repo.delete(m)
    session.commit()
    logger.info("machine.deleted", extra={"machine_id": machine_id})


def seed_demo_machines(session: Session, count: int, tool_capacity: int) -> int:
    """Crée EMXP1..EMXPn si la table est vide ; retourne le nombre créé."""
    if count <= 0 or MachineRepository(session).count() > 0:
        return 0
    for i in range(1, count + 1):
        create_machine(session, f"EMXP{i}", tool_capacity)
    return count
