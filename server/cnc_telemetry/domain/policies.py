# server/cnc_telemetry/domain/policies.py

from __future__ import annotations
"""
Règles d'autorisation : table de capacités rôle → opérations.

La vérification est faite UNE fois, à la frontière API (cf. core.security).
L'authentification elle-même est externe : on ne reçoit que le rôle.

Fonctions principales :
    is_permitted(role, operation)
    strip_privileged_fields(role, fields)
"""

from enum import Enum
from typing import Any, Mapping


class Role(str, Enum):
    SUPERADMIN = "SUPERADMIN"
    MANAGER = "MANAGER"
    SUPERVISOR = "SUPERVISOR"
    OPERATOR = "OPERATOR"


class Operation(str, Enum):
    CREATE_MACHINE = "create_machine"
    LIST_MACHINES = "list_machines"
    UPDATE_MACHINE = "update_machine"
    DELETE_MACHINE = "delete_machine"
    VIEW_HISTORY = "view_history"
    SUBSCRIBE_LIVE = "subscribe_live"
    SET_TOOL_IN_USE = "set_tool_in_use"


_READ_ONLY = frozenset({Operation.LIST_MACHINES, Operation.VIEW_HISTORY, Operation.SUBSCRIBE_LIVE})

CAPABILITIES: dict[Role, frozenset[Operation]] = {
    Role.SUPERADMIN: frozenset(Operation),
    Role.MANAGER: _READ_ONLY | {Operation.CREATE_MACHINE, Operation.UPDATE_MACHINE},
    Role.SUPERVISOR: _READ_ONLY,
    Role.OPERATOR: _READ_ONLY,
}

# Champs d'update réservés à SET_TOOL_IN_USE : ignorés (pas rejetés) sinon
TOOL_IN_USE_FIELDS = frozenset({"toolInUse"})


def parse_role(raw: str | None) -> Role | None:
    """Normalise le rôle reçu ("manager" -> Role.MANAGER) ; None si inconnu."""
    if not raw:
        return None
    try:
        return Role(raw.strip().upper())
    except ValueError:
        return None


def is_permitted(role: Role | None, operation: Operation) -> bool:
    if role is None:
        return False
    return operation in CAPABILITIES.get(role, frozenset())


def strip_privileged_fields(role: Role | None, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Retire silencieusement les champs toolInUse pour un appelant non privilégié."""
    if is_permitted(role, Operation.SET_TOOL_IN_USE):
        return dict(fields)
    return {k: v for k, v in fields.items() if k not in TOOL_IN_USE_FIELDS}
