"""Roster, payslip and activity log tables

Revision ID: 0001_roster_and_payslips
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_roster_and_payslips"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("cpf", sa.String(length=11), nullable=True),
        sa.Column("matricula", sa.String(length=20), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="Funcionário"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ATIVO"),
        sa.Column("needs_password_setup", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("emergency_phone", sa.String(length=50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_cpf", "user", ["cpf"])
    op.create_index("ix_user_matricula", "user", ["matricula"])
    op.create_index("ix_user_status", "user", ["status"])

    # Email and matricula are unique among active users only
    op.create_index(
        "uq_user_active_email",
        "user",
        [sa.text("lower(email)")],
        unique=True,
        postgresql_where=sa.text("status = 'ATIVO'"),
    )
    op.create_index(
        "uq_user_active_matricula",
        "user",
        ["matricula"],
        unique=True,
        postgresql_where=sa.text("status = 'ATIVO'"),
    )

    op.create_table(
        "payslip",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("file_url", sa.String(length=500), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "month", "year", name="uq_payslip_user_period"),
    )
    op.create_index("ix_payslip_user_id", "payslip", ["user_id"])

    op.create_table(
        "activity_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("admin_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("admin_name", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index("ix_activity_log_admin_id", "activity_log", ["admin_id"])
    op.create_index("ix_activity_log_occurred_at", "activity_log", ["occurred_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_log_occurred_at", table_name="activity_log")
    op.drop_index("ix_activity_log_admin_id", table_name="activity_log")
    op.drop_table("activity_log")

    op.drop_index("ix_payslip_user_id", table_name="payslip")
    op.drop_table("payslip")

    op.drop_index("uq_user_active_matricula", table_name="user")
    op.drop_index("uq_user_active_email", table_name="user")
    op.drop_index("ix_user_status", table_name="user")
    op.drop_index("ix_user_matricula", table_name="user")
    op.drop_index("ix_user_cpf", table_name="user")
    op.drop_table("user")
