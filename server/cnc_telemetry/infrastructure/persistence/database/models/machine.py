from __future__ import annotations
"""server/cnc_telemetry/infrastructure/persistence/database/models/machine.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table machines.
"""
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cnc_telemetry.infrastructure.persistence.database.base import Base
import datetime as dt

if TYPE_CHECKING:
    from .machine_sample import MachineSample


class Machine(Base):
    __tablename__ = "machines"
    __table_args__ = (
        CheckConstraint("tool_capacity > 0", name="ck_machines_tool_capacity_positive"),
    )

    # "M" + compteur sur 8 chiffres : M00000001
    machine_id: Mapped[str] = mapped_column(String(16), primary_key=True)
    machine_name: Mapped[str] = mapped_column(String(255))
    tool_capacity: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=lambda: dt.datetime.now(dt.timezone.utc), server_default=func.now(), index=True)

    samples: Mapped[list["MachineSample"]] = relationship(
        back_populates="machine",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
