"""
Schemas for the bulk employee import.

Candidate records, row errors and conflicts are produced by the import engine
and never stored; the read models at the bottom are the API responses.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.user import RosterEntry


class ImportErrorCode(str, Enum):
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_EMAIL_FORMAT = "INVALID_EMAIL_FORMAT"
    INVALID_SHORT_ID = "INVALID_SHORT_ID"
    DUPLICATE_EMAIL_IN_FILE = "DUPLICATE_EMAIL_IN_FILE"
    DUPLICATE_SHORT_ID_IN_FILE = "DUPLICATE_SHORT_ID_IN_FILE"
    DEACTIVATION_FAILED = "DEACTIVATION_FAILED"
    CREATION_FAILED = "CREATION_FAILED"
    FILE_UNREADABLE = "FILE_UNREADABLE"
    COMMIT_INTERRUPTED = "COMMIT_INTERRUPTED"


class CandidateRecord(BaseModel):
    """One spreadsheet row after normalization. Immutable."""

    model_config = ConfigDict(frozen=True)

    row_number: int
    name: str = Field(..., min_length=1)
    email: str
    short_id: Optional[str] = None
    short_id_synthesized: bool = False
    birth_date: Optional[date] = None
    phone: Optional[str] = None

    @property
    def email_key(self) -> str:
        return self.email.strip().lower()


class RowError(BaseModel):
    """A rejected row, with the raw values kept for display."""

    model_config = ConfigDict(frozen=True)

    row_number: int
    code: ImportErrorCode
    reason: str
    data: Dict[str, Any] = Field(default_factory=dict)


class Conflict(BaseModel):
    """A candidate colliding with exactly one ACTIVE roster entry."""

    model_config = ConfigDict(frozen=True)

    candidate: CandidateRecord
    existing: RosterEntry
    matched_on: Literal["short_id", "email"]


class OutcomeReport(BaseModel):
    """Terminal summary of one import attempt."""

    model_config = ConfigDict(frozen=True)

    imported: int = 0
    deactivated: int = 0
    skipped: int = 0
    errors: int = 0
    error_rows: Tuple[RowError, ...] = ()
    created_ids: Tuple[UUID, ...] = ()

    @classmethod
    def catastrophic(
        cls, reason: str, code: ImportErrorCode = ImportErrorCode.FILE_UNREADABLE
    ) -> "OutcomeReport":
        """Single-error report for an attempt that failed as a whole."""
        error = RowError(
            row_number=0,
            code=code,
            reason=reason,
            data={"Nome Completo": "N/A", "Email": "N/A", "Matrícula": "N/A"},
        )
        return cls(errors=1, error_rows=(error,))


# ---------------------------------------------------------------------------
# API read models
# ---------------------------------------------------------------------------

class ConflictView(BaseModel):
    index: int
    row_number: int
    name: str
    email: str
    short_id: Optional[str] = None
    short_id_synthesized: bool = False
    matched_on: str
    existing_id: UUID
    existing_name: str
    existing_email: str
    existing_short_id: str
    resolve: bool


class ConflictDecisionUpdate(BaseModel):
    resolve: bool


class ImportAttemptRead(BaseModel):
    attempt_id: UUID
    stage: str
    total_rows: int
    valid_count: int
    error_rows: List[RowError] = Field(default_factory=list)
    conflicts: List[ConflictView] = Field(default_factory=list)
    report: Optional[OutcomeReport] = None
    expires_at: Optional[datetime] = None
