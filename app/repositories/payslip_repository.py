"""
Payslip repository - database operations for Payslip.
"""

from typing import Iterable, List, Set, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payslip import Payslip


class PayslipRepository:
    """Repository for Payslip database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def existing_periods(self, user_ids: Iterable[UUID]) -> Set[Tuple[UUID, int, int]]:
        """(user_id, month, year) triples already stored for the given users."""
        ids = list({u for u in user_ids})
        if not ids:
            return set()
        result = await self.db.execute(
            select(Payslip.user_id, Payslip.month, Payslip.year).where(Payslip.user_id.in_(ids))
        )
        return {(row.user_id, row.month, row.year) for row in result.all()}

    async def upsert_many(self, rows: List[dict]) -> List[Payslip]:
        """
        Insert payslips in one statement, replacing the file of an existing
        (user_id, month, year) row.
        """
        if not rows:
            return []
        stmt = insert(Payslip).values(rows)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_payslip_user_period",
            set_={"file_url": stmt.excluded.file_url, "updated_at": func.now()},
        ).returning(Payslip.id)
        result = await self.db.execute(stmt)
        ids = [row[0] for row in result.all()]
        loaded = await self.db.execute(
            select(Payslip).where(Payslip.id.in_(ids)).execution_options(populate_existing=True)
        )
        return list(loaded.scalars().all())

