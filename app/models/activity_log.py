"""
ActivityLog model.

Audit trail of administrative actions (imports, status changes, payslip uploads).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import TimestampedModel


class LogAction:
    """Action labels shown in the activity log screen."""
    IMPORT_USERS = "Importação de Usuários"
    UPDATE_USER_STATUS = "Atualização de Status"
    PAYSLIP_UPLOAD = "Lançamento de Contracheque"


class ActivityLog(TimestampedModel):
    """
    ActivityLog table - who did what, and when.
    """

    __tablename__ = "activity_log"

    # The administrator who performed the action (None for system actions)
    admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )

    admin_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    action: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    details: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
