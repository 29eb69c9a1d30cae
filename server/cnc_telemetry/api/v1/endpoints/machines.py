from __future__ import annotations
"""server/cnc_telemetry/api/v1/endpoints/machines.py
~~~~~~~~~~~~~~~~~~~~~~~~
CRUD machines (capacités vérifiées par require_capability).

- POST   /machines              : création + génération immédiate (cette machine seule)
- GET    /machines              : liste, ordre de création
- PUT    /machines/{machine_id} : update partiel (toolInUse ignoré si non privilégié)
- DELETE /machines/{machine_id} : suppression en cascade des échantillons

Le travail base de données ne tourne jamais sur la boucle asyncio (minuteries,
envois live) : routes `def` exécutées dans le threadpool, ou run_in_threadpool.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cnc_telemetry.api.deps import get_runtime
from cnc_telemetry.api.schemas.machine import MachineIn, MachineUpdate
from cnc_telemetry.api.v1.serializers.machine import serialize_machine
from cnc_telemetry.application.runtime import TelemetryRuntime
from cnc_telemetry.application.services import machine_service
from cnc_telemetry.core.security import require_capability
from cnc_telemetry.domain.errors import NotFoundError, StorageError, ValidationError
from cnc_telemetry.domain.policies import Operation, Role
from cnc_telemetry.infrastructure.persistence.database.session import get_db
from cnc_telemetry.workers.tasks.generation_tasks import run_generation

router = APIRouter(prefix="/machines")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_machine(
    payload: MachineIn,
    role: Role = Depends(require_capability(Operation.CREATE_MACHINE)),
    db: Session = Depends(get_db),
    runtime: TelemetryRuntime = Depends(get_runtime),
) -> dict:
    try:
        m = await run_in_threadpool(machine_service.create_machine, db, payload.machine_name, payload.tool_capacity)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    # Données initiales pour la nouvelle machine uniquement
    await run_generation(runtime.engine, machines=[machine_service.to_ref(m)])
    return serialize_machine(m)


@router.get("")
def list_machines(
    role: Role = Depends(require_capability(Operation.LIST_MACHINES)),
    db: Session = Depends(get_db),
) -> list[dict]:
    return [serialize_machine(m) for m in machine_service.list_machines(db)]


@router.put("/{machine_id}")
def update_machine(
    machine_id: str,
    payload: MachineUpdate,
    role: Role = Depends(require_capability(Operation.UPDATE_MACHINE)),
    db: Session = Depends(get_db),
) -> dict:
    try:
        m = machine_service.update_machine(db, machine_id, payload.provided_fields(), role)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Machine not found")
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return serialize_machine(m)


@router.delete("/{machine_id}")
def delete_machine(
    machine_id: str,
    role: Role = Depends(require_capability(Operation.DELETE_MACHINE)),
    db: Session = Depends(get_db),
    runtime: TelemetryRuntime = Depends(get_runtime),
) -> dict:
    try:
        machine_service.delete_machine(db, machine_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Machine not found")
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    runtime.registry.drop_machine(machine_id)
    return {"message": "Machine deleted successfully"}
