"""
Roles of the HR portal and the check used by the bulk endpoints.

Role names are stored verbatim in `user.role`.
"""

from typing import Sequence

from fastapi import status

from app.errors import raise_app_error


class Roles:
    EMPLOYEE = "Funcionário"
    HR = "RH"
    ADMIN = "Administrador"

    # employee: self-service only; HR and admin manage the roster and payslips
    STAFF = (HR, ADMIN)


def has_role(user_role: str, allowed_roles: Sequence[str]) -> bool:
    return bool(user_role) and user_role in allowed_roles


def raise_if_not_roles(user_role: str, allowed_roles: Sequence[str], action: str = "perform this action") -> None:
    """Raise a 403 AppError unless `user_role` is one of `allowed_roles`."""
    if not has_role(user_role, allowed_roles):
        raise_app_error(
            status.HTTP_403_FORBIDDEN,
            "FORBIDDEN",
            f"Insufficient permissions to {action}",
            {"required_roles": list(allowed_roles), "role": user_role},
        )
