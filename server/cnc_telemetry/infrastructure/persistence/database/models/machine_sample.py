from __future__ import annotations
"""server/cnc_telemetry/infrastructure/persistence/database/models/machine_sample.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table machine_samples (une ligne par axe et par horodatage).

Pas de contrainte d'unicité (machine_id, axis, ts) : deux inserts identiques
sont conservés tous les deux.
"""
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cnc_telemetry.infrastructure.persistence.database.base import Base
import datetime as dt

if TYPE_CHECKING:
    from .machine import Machine


class MachineSample(Base):
    __tablename__ = "machine_samples"
    __table_args__ = (
        Index("ix_machine_samples_machine_ts", "machine_id", "ts"),
        CheckConstraint("axis IN ('X','Y','Z','A','C')", name="ck_machine_samples_axis"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    machine_id: Mapped[str] = mapped_column(String(16), ForeignKey("machines.machine_id", ondelete="CASCADE"))
    axis: Mapped[str] = mapped_column(String(1))  # X|Y|Z|A|C
    tool_offset: Mapped[float] = mapped_column(Float)
    feedrate: Mapped[int] = mapped_column(Integer)
    tool_in_use: Mapped[int] = mapped_column(Integer)
    ts: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True))

    machine: Mapped["Machine"] = relationship(back_populates="samples")
