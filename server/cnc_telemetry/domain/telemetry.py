# server/cnc_telemetry/domain/telemetry.py
from __future__ import annotations
"""
Types de la chaîne télémétrie (simples dataclasses) partagés par le
générateur, le moteur de distribution et le service d'historique.
On garde ça indépendant de l'ORM.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from cnc_telemetry.core.utils.datetime import isoformat_z

# Ensemble fermé, ordre d'affichage conservé
AXES: tuple[str, ...] = ("X", "Y", "Z", "A", "C")

TOOL_OFFSET_RANGE = (5.0, 40.0)
FEEDRATE_RANGE = (0, 20000)


def is_valid_axis(axis: Any) -> bool:
    return isinstance(axis, str) and axis in AXES


@dataclass(frozen=True)
class MachineRef:
    """Vue détachée d'une Machine (utilisable hors session SQLAlchemy)."""
    machine_id: str
    machine_name: str
    tool_capacity: int


@dataclass(frozen=True)
class AxisReading:
    tool_offset: float
    feedrate: int
    tool_in_use: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "toolOffset": self.tool_offset,
            "feedrate": self.feedrate,
            "toolInUse": self.tool_in_use,
        }


@dataclass(frozen=True)
class MachineRecord:
    """Un horodatage, une machine, une lecture par axe : l'unité distribuée."""
    machine_id: str
    machine_name: str
    timestamp: datetime
    axes: Mapping[str, AxisReading] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Forme poussée sur le canal live et renvoyée par l'historique."""
        return {
            "machineId": self.machine_id,
            "machineName": self.machine_name,
            "timestamp": isoformat_z(self.timestamp),
            "axes": {axis: reading.to_payload() for axis, reading in self.axes.items()},
        }
