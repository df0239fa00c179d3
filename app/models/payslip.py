"""
Payslip model.

One payslip document per employee per month.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import TimestampedModel

if TYPE_CHECKING:
    from app.models.user import User


class Payslip(TimestampedModel):
    """Payslip table - (user_id, month, year) is unique."""

    __tablename__ = "payslip"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    month: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Where the PDF was stored
    file_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="payslips",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "month", "year", name="uq_payslip_user_period"),
    )
