"""
User model.

Every person known to the HR portal is a user: employees, HR staff and
administrators. The active users form the employee roster.
"""

from datetime import date
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Boolean, Date, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import TimestampedModel

if TYPE_CHECKING:
    from app.models.payslip import Payslip


class UserStatus:
    """Roster status values stored in user.status."""
    ACTIVE = "ATIVO"
    INACTIVE = "INATIVO"

    ALL = [ACTIVE, INACTIVE]


class User(TimestampedModel):
    """
    User table - one row per employee identity.

    Email and matricula are unique among ACTIVE users only, so an inactive
    identity never blocks re-use of its email or matricula.
    """

    __tablename__ = "user"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Brazilian taxpayer id, also used to match payslip filenames
    cpf: Mapped[Optional[str]] = mapped_column(
        String(11),
        nullable=True,
        index=True,
    )

    # Fixed-width numeric employee code
    matricula: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Funcionário",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserStatus.ACTIVE,
        index=True,
    )

    needs_password_setup: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    birth_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    emergency_phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    payslips: Mapped[List["Payslip"]] = relationship(
        "Payslip",
        back_populates="user",
        lazy="noload",
    )

    __table_args__ = (
        Index(
            "uq_user_active_email",
            text("lower(email)"),
            unique=True,
            postgresql_where=text("status = 'ATIVO'"),
        ),
        Index(
            "uq_user_active_matricula",
            "matricula",
            unique=True,
            postgresql_where=text("status = 'ATIVO'"),
        ),
    )
