# server/cnc_telemetry/api/v1/serializers/machine.py

from typing import Any, Dict, TYPE_CHECKING

from cnc_telemetry.core.utils.datetime import isoformat_z

if TYPE_CHECKING:
    from cnc_telemetry.infrastructure.persistence.database.models.machine import Machine


def serialize_machine(m: "Machine") -> Dict[str, Any]:
    return {
        "machineId": m.machine_id,
        "machineName": m.machine_name,
        "toolCapacity": m.tool_capacity,
        "createdAt": isoformat_z(m.created_at) if m.created_at else None,
    }
