"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from app.models.user import User, UserStatus
from app.models.payslip import Payslip
from app.models.activity_log import ActivityLog, LogAction

# Export all models
__all__ = [
    "User",
    "UserStatus",
    "Payslip",
    "ActivityLog",
    "LogAction",
]
