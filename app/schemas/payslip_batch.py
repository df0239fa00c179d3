"""
Schemas for batch payslip upload.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PayslipFileStatus(str, Enum):
    READY = "ready"
    DUPLICATE = "duplicate"
    ERROR = "error"


class PayslipBatchReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    created: int = 0
    replaced: int = 0
    skipped: int = 0
    errors: int = 0


class PayslipFileView(BaseModel):
    index: int
    filename: str
    status: PayslipFileStatus
    reason: Optional[str] = None
    user_id: Optional[UUID] = None
    user_name: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    replace: bool = False


class PayslipBatchRead(BaseModel):
    batch_id: UUID
    stage: str
    ready_count: int
    duplicate_count: int
    error_count: int
    files: List[PayslipFileView] = Field(default_factory=list)
    report: Optional[PayslipBatchReport] = None
    expires_at: Optional[datetime] = None
