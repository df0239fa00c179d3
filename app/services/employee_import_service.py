"""
Employee import business logic service.

Drives one import attempt through upload -> [conflict] -> result. Attempts
waiting for the operator's decisions are kept in an in-process store; nothing
is written to the roster until the commit step.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional
from uuid import UUID

from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.schemas.employee_import import ImportErrorCode, OutcomeReport
from app.services.attempt_store import AttemptStore
from app.services.employee_import import (
    Classification,
    CommitCoordinator,
    ImportStage,
    ResolutionSession,
    RosterGateway,
    RosterOperationError,
    ShortIdSequence,
    SpreadsheetError,
    UniquenessIndex,
    classify,
    normalize_rows,
    read_rows,
)

logger = logging.getLogger(__name__)

FILE_UNREADABLE_REASON = "Erro ao ler o arquivo. Verifique se o formato está correto."
ROSTER_UNAVAILABLE_REASON = "Não foi possível consultar os funcionários ativos. Tente novamente."
COMMIT_INTERRUPTED_REASON = (
    "A importação foi interrompida durante a gravação. "
    "Confira a lista de funcionários antes de importar novamente."
)


class EmployeeImportError(Exception):
    """Base class for import workflow errors surfaced to the API."""


class ImportAttemptNotFound(EmployeeImportError):
    pass


class ImportAlreadyCommitted(EmployeeImportError):
    pass


@dataclass
class ImportAttempt:
    """State of one import attempt between the upload and the result."""

    stage: ImportStage
    expires_at: datetime
    id: UUID = field(default_factory=uuid.uuid4)
    classification: Optional[Classification] = None
    session: Optional[ResolutionSession] = None
    report: Optional[OutcomeReport] = None


# Shared by all requests of this process
import_attempts: AttemptStore[ImportAttempt] = AttemptStore(settings.IMPORT_ATTEMPT_TTL_MINUTES)


class EmployeeImportService:
    """Service for bulk employee import."""

    def __init__(
        self,
        gateway: RosterGateway,
        store: Optional[AttemptStore[ImportAttempt]] = None,
        short_id_length: Optional[int] = None,
    ):
        self.gateway = gateway
        self.store = store if store is not None else import_attempts
        self.short_id_length = short_id_length or settings.MATRICULA_LENGTH
        self.coordinator = CommitCoordinator(gateway)

    async def classify_rows(self, raw_rows: List[Mapping[str, Any]]) -> Classification:
        """Normalize and classify rows against a fresh roster snapshot."""
        roster = await self.gateway.load_active_roster()
        highest = await self.gateway.highest_short_id()
        index = UniquenessIndex.build(roster)
        normalized = normalize_rows(raw_rows, self.short_id_length)
        classification = classify(normalized, index, ShortIdSequence(highest, self.short_id_length))
        logger.info(
            "Classified %s row(s) against %s active user(s): valid=%s errors=%s conflicts=%s",
            len(normalized),
            len(roster),
            len(classification.valid),
            len(classification.errors),
            len(classification.conflicts),
        )
        return classification

    def _catastrophic_attempt(self, reason: str) -> ImportAttempt:
        attempt = ImportAttempt(
            stage=ImportStage.RESULT,
            expires_at=self.store.new_expiry(),
            report=OutcomeReport.catastrophic(reason),
        )
        self.store.put(attempt)
        return attempt

    async def start_import(self, raw_rows: List[Mapping[str, Any]]) -> ImportAttempt:
        """
        Classify the rows and either stop at the CONFLICT stage or, when there
        is nothing for the operator to decide, commit straight away.
        """
        try:
            classification = await self.classify_rows(raw_rows)
        except RosterOperationError as exc:
            logger.error("Import aborted before classification: %s", exc)
            return self._catastrophic_attempt(ROSTER_UNAVAILABLE_REASON)

        attempt = ImportAttempt(
            stage=ImportStage.UPLOAD,
            expires_at=self.store.new_expiry(),
            classification=classification,
            session=ResolutionSession.present(classification.conflicts),
        )
        self.store.put(attempt)

        if classification.has_conflicts:
            attempt.stage = ImportStage.CONFLICT
            return attempt

        await self._finish(attempt)
        return attempt

    async def start_import_from_file(self, filename: str, content: bytes) -> ImportAttempt:
        try:
            # openpyxl parsing is blocking
            raw_rows = await run_in_threadpool(read_rows, filename, content)
        except SpreadsheetError as exc:
            logger.warning("Unreadable import file %r: %s", filename, exc)
            return self._catastrophic_attempt(FILE_UNREADABLE_REASON)
        return await self.start_import(raw_rows)

    def get_attempt(self, attempt_id: UUID) -> ImportAttempt:
        attempt = self.store.get(attempt_id)
        if attempt is None:
            raise ImportAttemptNotFound(f"Import attempt {attempt_id} not found or expired")
        return attempt

    def _open_session(self, attempt_id: UUID) -> ResolutionSession:
        attempt = self.get_attempt(attempt_id)
        if attempt.stage != ImportStage.CONFLICT or attempt.session is None:
            raise ImportAlreadyCommitted(f"Import attempt {attempt_id} is no longer awaiting decisions")
        return attempt.session

    def toggle_decision(self, attempt_id: UUID, index: int) -> bool:
        return self._open_session(attempt_id).toggle(index)

    def set_decision(self, attempt_id: UUID, index: int, resolve: bool) -> None:
        self._open_session(attempt_id).set_decision(index, resolve)

    async def commit_import(self, attempt_id: UUID) -> OutcomeReport:
        attempt = self.get_attempt(attempt_id)
        if attempt.stage == ImportStage.RESULT:
            raise ImportAlreadyCommitted(f"Import attempt {attempt_id} was already committed")
        return await self._finish(attempt)

    def abandon(self, attempt_id: UUID) -> None:
        """Drop an attempt. Nothing has been written, so there is nothing to undo."""
        attempt = self.get_attempt(attempt_id)
        if attempt.stage == ImportStage.RESULT:
            raise ImportAlreadyCommitted(f"Import attempt {attempt_id} was already committed")
        self.store.discard(attempt_id)

    async def _finish(self, attempt: ImportAttempt) -> OutcomeReport:
        decisions = attempt.session.close()
        # Closed before the first write so a second commit request is rejected
        attempt.stage = ImportStage.RESULT
        classification = attempt.classification
        try:
            attempt.report = await self.coordinator.commit(
                classification.valid,
                decisions,
                classification.errors,
            )
        except Exception:
            # some writes may already be applied
            logger.exception("Import attempt %s interrupted during commit", attempt.id)
            attempt.report = OutcomeReport.catastrophic(
                COMMIT_INTERRUPTED_REASON, ImportErrorCode.COMMIT_INTERRUPTED
            )
        return attempt.report

    async def run_import(
        self,
        raw_rows: List[Mapping[str, Any]],
        decide: Optional[Callable[[ResolutionSession], None]] = None,
    ) -> OutcomeReport:
        """
        Run a whole import in one call.

        `decide` may adjust the conflict decisions before the commit; without
        it every conflict is resolved by deactivate-and-replace. Always returns
        a report: failures the pipeline cannot attribute to a row become the
        single-error report, FILE_UNREADABLE before the commit starts and
        COMMIT_INTERRUPTED after.
        """
        try:
            attempt = await self.start_import(raw_rows)
            if attempt.stage == ImportStage.CONFLICT:
                if decide is not None:
                    decide(attempt.session)
                await self._finish(attempt)
            self.store.discard(attempt.id)
            return attempt.report
        except Exception:
            logger.exception("Employee import failed")
            return OutcomeReport.catastrophic(FILE_UNREADABLE_REASON)
