from __future__ import annotations
"""server/cnc_telemetry/domain/errors.py
~~~~~~~~~~~~~~~~~~~~~~~~
Erreurs métier de la chaîne télémétrie.

- ValidationError : requête rejetée (axe inconnu, champ manquant, machine invalide)
- NotFoundError   : machineId inconnu (update / delete / requête)
- StorageError    : échec de persistance (loggué, la génération continue)
- DeliveryError   : push live impossible (loggué uniquement, jamais retenté)

Les endpoints traduisent ces erreurs en HTTPException à la frontière API.
"""


class TelemetryError(Exception):
    """Racine des erreurs métier."""


class ValidationError(TelemetryError):
    pass


class NotFoundError(TelemetryError):
    def __init__(self, machine_id: str, message: str | None = None) -> None:
        self.machine_id = machine_id
        super().__init__(message or f"Machine not found: {machine_id}")


class StorageError(TelemetryError):
    pass


class DeliveryError(TelemetryError):
    def __init__(self, connection_id: str, reason: str) -> None:
        self.connection_id = connection_id
        self.reason = reason
        super().__init__(f"delivery to {connection_id} failed: {reason}")
