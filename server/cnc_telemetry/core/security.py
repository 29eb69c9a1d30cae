from __future__ import annotations
"""server/cnc_telemetry/core/security.py
~~~~~~~~~~~~~~~~~~~~~~~~
Contrôle de capacité à la frontière API.

Le rôle de l'appelant arrive dans un header (X-User-Role par défaut) posé par
la passerelle d'authentification ; on ne fait ici que consulter la table de
capacités (domain.policies).

- 401 si le header est absent
- 403 si le rôle est inconnu ou si l'opération n'est pas permise
"""
from typing import Callable, Optional

from fastapi import HTTPException, Request, status

from cnc_telemetry.core.config import settings
from cnc_telemetry.domain.policies import Operation, Role, is_permitted, parse_role


def role_from_headers(headers) -> tuple[Optional[str], Optional[Role]]:
    raw = headers.get(settings.ROLE_HEADER)
    return raw, parse_role(raw)


def require_capability(operation: Operation) -> Callable[[Request], Role]:
    """
    Fabrique de dépendance FastAPI :

        @router.delete("/{machine_id}")
        async def delete(role: Role = Depends(require_capability(Operation.DELETE_MACHINE))): ...
    """
    async def _check(request: Request) -> Role:
        raw, role = role_from_headers(request.headers)
        if not raw:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_role")
        if role is None or not is_permitted(role, operation):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
        return role

    _check.__name__ = f"require_{operation.value}"
    return _check
