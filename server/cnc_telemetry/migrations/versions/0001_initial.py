from __future__ import annotations
"""server/cnc_telemetry/migrations/versions/0001_initial.py
~~~~~~~~~~~~~~~~~~~~~~~~
Schéma initial : machines + machine_samples (index de plage machine_id, ts).
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "machines",
        sa.Column("machine_id", sa.String(16), primary_key=True),
        sa.Column("machine_name", sa.String(255), nullable=False),
        sa.Column("tool_capacity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("tool_capacity > 0", name="ck_machines_tool_capacity_positive"),
    )
    op.create_index("ix_machines_created_at", "machines", ["created_at"], unique=False)

    op.create_table(
        "machine_samples",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("machine_id", sa.String(16), nullable=False),
        sa.Column("axis", sa.String(1), nullable=False),
        sa.Column("tool_offset", sa.Float(), nullable=False),
        sa.Column("feedrate", sa.Integer(), nullable=False),
        sa.Column("tool_in_use", sa.Integer(), nullable=False),
        sa.Column("ts", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["machine_id"], ["machines.machine_id"], ondelete="CASCADE"),
        sa.CheckConstraint("axis IN ('X','Y','Z','A','C')", name="ck_machine_samples_axis"),
    )
    op.create_index("ix_machine_samples_machine_ts", "machine_samples", ["machine_id", "ts"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_machine_samples_machine_ts", table_name="machine_samples")
    op.drop_table("machine_samples")
    op.drop_index("ix_machines_created_at", table_name="machines")
    op.drop_table("machines")
