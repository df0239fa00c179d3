"""
User Pydantic schemas.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.permissions import Roles
from app.models.user import UserStatus


class UserCreate(BaseModel):
    """Schema for creating a new employee user."""

    name: str
    email: str
    matricula: str
    cpf: Optional[str] = None
    role: str = Roles.EMPLOYEE
    status: str = UserStatus.ACTIVE
    needs_password_setup: bool = True
    birth_date: Optional[date] = None
    emergency_phone: Optional[str] = None


class RosterEntry(BaseModel):
    """
    An employee identity as seen by the import engine.

    Only the identity keys are carried; everything else stays in the user table.
    """

    id: UUID
    name: str
    email: str
    short_id: str
    status: str = UserStatus.ACTIVE

    model_config = ConfigDict(frozen=True)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
