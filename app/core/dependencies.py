"""
FastAPI dependencies for the application.
"""

from uuid import UUID

from fastapi import Depends, Header, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Roles, raise_if_not_roles
from app.db.session import get_db
from app.errors import raise_app_error
from app.models.user import User, UserStatus
from app.repositories.user_repository import UserRepository
from app.services.employee_import import RosterGateway, SqlRosterGateway
from app.services.employee_import_service import EmployeeImportService
from app.services.payslip_batch_service import PayslipBatchService


async def get_current_user(
    x_user_id: str = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the acting user from the X-User-ID header.

    The header is set by the authentication layer in front of the API.

    Raises:
        401: If the header is missing, malformed or names no active user
    """
    if not x_user_id:
        raise_app_error(status.HTTP_401_UNAUTHORIZED, "UNAUTHENTICATED", "X-User-ID header is required")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise_app_error(status.HTTP_401_UNAUTHORIZED, "UNAUTHENTICATED", "X-User-ID header is not a valid id")

    user = await UserRepository(db).get_by_id(user_id)
    if user is None or user.status != UserStatus.ACTIVE:
        raise_app_error(status.HTTP_401_UNAUTHORIZED, "UNAUTHENTICATED", "User not found or inactive")
    return user


async def require_staff(user: User = Depends(get_current_user)) -> User:
    """Only HR staff and administrators may run bulk operations."""
    raise_if_not_roles(user.role, Roles.STAFF, action="run bulk uploads")
    return user


async def get_roster_gateway(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_staff),
) -> RosterGateway:
    return SqlRosterGateway(db, actor=user)


async def get_employee_import_service(
    gateway: RosterGateway = Depends(get_roster_gateway),
) -> EmployeeImportService:
    return EmployeeImportService(gateway)


async def get_payslip_batch_service(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_staff),
) -> PayslipBatchService:
    return PayslipBatchService(db, actor=user)
