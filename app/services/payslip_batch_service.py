"""
Batch payslip upload business logic service.

Same shape as the employee import: classify the uploaded files, let the
operator opt duplicates into replacement, then store everything selected in a
single upsert.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.activity_log import LogAction
from app.models.user import User
from app.repositories.activity_log_repository import ActivityLogRepository
from app.repositories.payslip_repository import PayslipRepository
from app.repositories.user_repository import UserRepository
from app.schemas.payslip_batch import PayslipBatchReport, PayslipFileStatus
from app.services.attempt_store import AttemptStore
from app.services.payslip_batch import (
    PayslipFile,
    PayslipOwner,
    PayslipStorage,
    classify_payslip_files,
    owner_identifiers,
)
from app.utils.time import utc_today

logger = logging.getLogger(__name__)


class PayslipBatchStage(str, Enum):
    REVIEW = "review"
    RESULT = "result"


class PayslipBatchError(Exception):
    """Invalid operation on a payslip batch."""


class PayslipBatchNotFound(PayslipBatchError):
    pass


class PayslipBatchClosed(PayslipBatchError):
    pass


@dataclass
class PayslipBatch:
    expires_at: datetime
    files: List[PayslipFile]
    stage: PayslipBatchStage = PayslipBatchStage.REVIEW
    id: UUID = field(default_factory=uuid.uuid4)
    report: Optional[PayslipBatchReport] = None

    def count(self, status: PayslipFileStatus) -> int:
        return sum(1 for f in self.files if f.status == status)


payslip_batches: AttemptStore[PayslipBatch] = AttemptStore(settings.IMPORT_ATTEMPT_TTL_MINUTES)


class PayslipBatchService:
    """Service for batch payslip upload."""

    def __init__(
        self,
        db: AsyncSession,
        actor: Optional[User] = None,
        store: Optional[AttemptStore[PayslipBatch]] = None,
        storage: Optional[PayslipStorage] = None,
    ):
        self.db = db
        self.actor = actor
        self.users = UserRepository(db)
        self.payslips = PayslipRepository(db)
        self.activity = ActivityLogRepository(db)
        self.store = store if store is not None else payslip_batches
        self.storage = storage or PayslipStorage(settings.PAYSLIP_STORAGE_ROOT)

    async def preview(self, files: List[Tuple[str, bytes]]) -> PayslipBatch:
        """Classify uploaded files; nothing is stored yet."""
        identifier_length = settings.PAYSLIP_IDENTIFIER_LENGTH
        users = await self.users.list_by_cpfs(owner_identifiers(files, identifier_length))
        owners = {u.cpf: PayslipOwner(id=u.id, name=u.name, identifier=u.cpf) for u in users}
        existing = await self.payslips.existing_periods(o.id for o in owners.values())

        classified = await run_in_threadpool(
            classify_payslip_files,
            files,
            owners,
            existing,
            identifier_length=identifier_length,
            min_year=settings.PAYSLIP_MIN_YEAR,
            today=utc_today(),
        )
        batch = PayslipBatch(expires_at=self.store.new_expiry(), files=classified)
        self.store.put(batch)
        logger.info(
            "Payslip batch %s: ready=%s duplicate=%s error=%s",
            batch.id,
            batch.count(PayslipFileStatus.READY),
            batch.count(PayslipFileStatus.DUPLICATE),
            batch.count(PayslipFileStatus.ERROR),
        )
        return batch

    def get_batch(self, batch_id: UUID) -> PayslipBatch:
        batch = self.store.get(batch_id)
        if batch is None:
            raise PayslipBatchNotFound(f"Payslip batch {batch_id} not found or expired")
        return batch

    def _open_batch(self, batch_id: UUID) -> PayslipBatch:
        batch = self.get_batch(batch_id)
        if batch.stage != PayslipBatchStage.REVIEW:
            raise PayslipBatchClosed(f"Payslip batch {batch_id} was already committed")
        return batch

    def toggle_replace(self, batch_id: UUID, index: int) -> bool:
        """Flip the replace flag of a duplicate file and return its new value."""
        batch = self._open_batch(batch_id)
        if index < 0 or index >= len(batch.files):
            raise PayslipBatchError(f"No file at position {index}")
        item = batch.files[index]
        if item.status != PayslipFileStatus.DUPLICATE:
            raise PayslipBatchError(f"File {item.filename} is not a duplicate")
        item.replace = not item.replace
        return item.replace

    def abandon(self, batch_id: UUID) -> None:
        self._open_batch(batch_id)
        self.store.discard(batch_id)

    def _discard_file(self, file_url: str) -> None:
        try:
            self.storage.delete(file_url)
        except OSError as exc:
            logger.warning("Could not remove unused payslip file %s: %s", file_url, exc)

    async def commit(self, batch_id: UUID) -> PayslipBatchReport:
        batch = self._open_batch(batch_id)
        batch.stage = PayslipBatchStage.RESULT

        selected = [
            f for f in batch.files
            if f.status == PayslipFileStatus.READY or (f.status == PayslipFileStatus.DUPLICATE and f.replace)
        ]
        skipped = sum(1 for f in batch.files if f.status == PayslipFileStatus.DUPLICATE and not f.replace)
        errors = batch.count(PayslipFileStatus.ERROR)

        rows = []
        replaced = 0
        for f in selected:
            try:
                file_url = self.storage.save(f.owner.identifier, f.month, f.year, f.content, tag=batch.id.hex)
            except OSError as exc:
                logger.error("Could not store payslip %s: %s", f.filename, exc)
                errors += 1
                continue
            rows.append(
                {
                    "id": uuid.uuid4(),
                    "user_id": f.owner.id,
                    "month": f.month,
                    "year": f.year,
                    "file_url": file_url,
                }
            )
            if f.status == PayslipFileStatus.DUPLICATE:
                replaced += 1

        stored = 0
        if rows:
            try:
                async with self.db.begin_nested():
                    stored = len(await self.payslips.upsert_many(rows))
                    await self.activity.add(
                        action=LogAction.PAYSLIP_UPLOAD,
                        details=f"Lançou {stored} contracheque(s) em lote.",
                        admin_id=self.actor.id if self.actor else None,
                        admin_name=self.actor.name if self.actor else None,
                    )
            except SQLAlchemyError as exc:
                logger.error("Payslip batch %s could not be stored: %s", batch.id, exc)
                for row in rows:
                    self._discard_file(row["file_url"])
                errors += len(rows)
                replaced = 0
                stored = 0

        batch.report = PayslipBatchReport(
            created=stored - replaced,
            replaced=replaced,
            skipped=skipped,
            errors=errors,
        )
        return batch.report
