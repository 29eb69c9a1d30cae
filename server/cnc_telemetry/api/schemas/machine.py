from __future__ import annotations
"""
server/cnc_telemetry/api/schemas/machine.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Pydantic schemas pour les machines.

Les champs JSON restent en camelCase (machineName, toolCapacity) : c'est le
format consommé par le front ; populate_by_name autorise aussi snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MachineIn(BaseModel):
    """Création : nom + capacité d'outils (> 0, sinon 422)."""
    model_config = ConfigDict(populate_by_name=True)

    machine_name: str = Field(..., alias="machineName", min_length=1, max_length=255)
    tool_capacity: int = Field(..., alias="toolCapacity", gt=0)


class MachineUpdate(BaseModel):
    """
    Update partiel. toolInUse n'est PAS validé ici : pour un rôle non
    privilégié il est retiré en silence quelle que soit sa valeur
    (cf. domain.policies).
    """
    model_config = ConfigDict(populate_by_name=True)

    machine_name: str | None = Field(default=None, alias="machineName", min_length=1, max_length=255)
    tool_capacity: int | None = Field(default=None, alias="toolCapacity", gt=0)
    tool_in_use: Any = Field(default=None, alias="toolInUse")

    def provided_fields(self) -> dict:
        """Champs réellement envoyés, en camelCase."""
        return self.model_dump(by_alias=True, exclude_unset=True)
