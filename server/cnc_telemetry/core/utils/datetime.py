# coding: utf-8
# server/cnc_telemetry/core/utils/datetime.py
"""server/cnc_telemetry/core/utils/datetime.py
~~~~~~~~~~~~~~~~~~~~~~~~
Utilitaires pour la gestion des dates et heures.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow_ms() -> datetime:
    """Instant courant UTC tronqué à la milliseconde (précision conservée par tous les backends)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def as_utc(d: Optional[datetime]) -> Optional[datetime]:
    """Retourne d en timezone UTC 'aware' (SQLite renvoie des datetimes naïfs)."""
    if d is None:
        return None
    if d.tzinfo is None:
        return d.replace(tzinfo=timezone.utc)
    return d.astimezone(timezone.utc)


def isoformat_z(d: datetime) -> str:
    """ISO-8601 UTC à la milliseconde, suffixe Z : 2024-01-01T00:00:00.000Z"""
    return as_utc(d).isoformat(timespec="milliseconds").replace("+00:00", "Z")
