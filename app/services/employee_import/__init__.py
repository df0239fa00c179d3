"""
Bulk employee import engine.

normalize -> classify (against a uniqueness index of the active roster)
-> resolve conflicts -> commit.
"""

from app.services.employee_import.classifier import Classification, ShortIdSequence, classify
from app.services.employee_import.coordinator import CommitCoordinator
from app.services.employee_import.gateway import (
    CreateManyResult,
    RosterGateway,
    RosterOperationError,
    SqlRosterGateway,
)
from app.services.employee_import.index import UniquenessIndex
from app.services.employee_import.normalizer import normalize_row, normalize_rows
from app.services.employee_import.session import (
    ImportStage,
    ResolutionDecision,
    ResolutionError,
    ResolutionSession,
)
from app.services.employee_import.spreadsheet import SpreadsheetError, read_rows, template_csv

__all__ = [
    "Classification",
    "ShortIdSequence",
    "classify",
    "CommitCoordinator",
    "CreateManyResult",
    "RosterGateway",
    "RosterOperationError",
    "SqlRosterGateway",
    "UniquenessIndex",
    "normalize_row",
    "normalize_rows",
    "ImportStage",
    "ResolutionDecision",
    "ResolutionError",
    "ResolutionSession",
    "SpreadsheetError",
    "read_rows",
    "template_csv",
]
