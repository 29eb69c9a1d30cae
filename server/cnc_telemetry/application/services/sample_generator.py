from __future__ import annotations
"""server/cnc_telemetry/application/services/sample_generator.py
~~~~~~~~~~~~~~~~~~~~~~~~
Génération de lectures synthétiques par axe.

Pour chaque machine ciblée : exactement une lecture par axe (X, Y, Z, A, C),
valeurs indépendantes tirées dans les plages nominales, toutes au même
horodatage. toolInUse est borné par le toolCapacity DE LA machine : [1, C].
"""
import logging
import random
from datetime import datetime
from typing import Iterable, Optional

from cnc_telemetry.core.utils.datetime import utcnow_ms
from cnc_telemetry.domain.errors import ValidationError
from cnc_telemetry.domain.telemetry import (
    AXES,
    FEEDRATE_RANGE,
    TOOL_OFFSET_RANGE,
    AxisReading,
    MachineRecord,
    MachineRef,
)

logger = logging.getLogger(__name__)


def tool_in_use_bounds(tool_capacity: int) -> tuple[int, int]:
    """Plage valide de toolInUse ; une capacité < 1 est refusée (pas de clamp)."""
    if not isinstance(tool_capacity, int) or isinstance(tool_capacity, bool) or tool_capacity < 1:
        raise ValidationError(f"toolCapacity must be a positive integer (got {tool_capacity!r})")
    return 1, tool_capacity


def generate_reading(tool_capacity: int, rng: random.Random | None = None) -> AxisReading:
    rng = rng or random
    low, high = tool_in_use_bounds(tool_capacity)
    return AxisReading(
        tool_offset=rng.uniform(*TOOL_OFFSET_RANGE),
        feedrate=rng.randrange(FEEDRATE_RANGE[0], FEEDRATE_RANGE[1]),
        tool_in_use=rng.randint(low, high),
    )


def generate_record(
    machine: MachineRef,
    timestamp: Optional[datetime] = None,
    rng: random.Random | None = None,
) -> MachineRecord:
    """Un MachineRecord complet (tous les axes) pour une machine."""
    tool_in_use_bounds(machine.tool_capacity)
    ts = timestamp or utcnow_ms()
    return MachineRecord(
        machine_id=machine.machine_id,
        machine_name=machine.machine_name,
        timestamp=ts,
        axes={axis: generate_reading(machine.tool_capacity, rng) for axis in AXES},
    )


def generate(
    machines: Iterable[MachineRef],
    timestamp: Optional[datetime] = None,
    rng: random.Random | None = None,
) -> list[MachineRecord]:
    """
    Un record par machine, horodatage commun à toute l'invocation.
    Une machine mal configurée est logguée et ignorée : les autres sont produites.
    """
    ts = timestamp or utcnow_ms()
    records: list[MachineRecord] = []
    for m in machines:
        try:
            records.append(generate_record(m, ts, rng))
        except ValidationError as exc:
            logger.warning("generator.skip_machine", extra={"machine_id": m.machine_id, "reason": str(exc)})
    return records
