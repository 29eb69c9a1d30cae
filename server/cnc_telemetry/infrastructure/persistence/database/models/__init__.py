from __future__ import annotations
"""server/cnc_telemetry/infrastructure/persistence/database/models/__init__.py
~~~~~~~~~~~~~~~~~~~~~~~~
Modèles ORM (register for Alembic).
"""

from .machine import Machine
from .machine_sample import MachineSample

__all__ = ["Machine", "MachineSample"]
