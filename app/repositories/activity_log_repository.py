"""
Activity log repository - audit trail writes and reads.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityLog


class ActivityLogRepository:
    """Repository for ActivityLog database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(
        self,
        action: str,
        details: str,
        admin_id: Optional[UUID] = None,
        admin_name: Optional[str] = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            admin_id=admin_id,
            admin_name=admin_name,
            action=action,
            details=details,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

