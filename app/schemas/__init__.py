"""
Schemas package.

Import all schemas here for easy access.
"""

from app.schemas.user import UserCreate, RosterEntry
from app.schemas.employee_import import (
    ImportErrorCode,
    CandidateRecord,
    RowError,
    Conflict,
    OutcomeReport,
)
from app.schemas.payslip_batch import PayslipFileStatus, PayslipBatchReport
