from __future__ import annotations
"""server/cnc_telemetry/api/v1/endpoints/history.py
~~~~~~~~~~~~~~~~~~~~~~~~
GET /historical-data?machineId=M00000001 : fenêtre glissante (15 min).

Liste vide si aucune lecture dans la fenêtre ; 404 si la machine n'existe pas.
Route `def` : la requête tourne dans le threadpool, pas sur la boucle asyncio.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cnc_telemetry.application.services.history_service import get_historical_data
from cnc_telemetry.core.security import require_capability
from cnc_telemetry.domain.errors import NotFoundError, StorageError
from cnc_telemetry.domain.policies import Operation, Role
from cnc_telemetry.infrastructure.persistence.database.session import get_db

router = APIRouter()


@router.get("/historical-data")
def historical_data(
    machine_id: str = Query(..., alias="machineId", min_length=1),
    role: Role = Depends(require_capability(Operation.VIEW_HISTORY)),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return get_historical_data(db, machine_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Machine not found")
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
