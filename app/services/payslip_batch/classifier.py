"""
Classification of uploaded payslip files.

Each file ends up `ready`, `duplicate` (a payslip for that employee and month
already exists) or `error`. Duplicates are skipped unless the operator opts in
to replacing them.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from app.schemas.payslip_batch import PayslipFileStatus
from app.services.payslip_batch.filename import match_filename
from app.services.payslip_batch.pdf import is_readable_pdf

INVALID_NAME_REASON = "Nome de arquivo inválido."
UNKNOWN_EMPLOYEE_REASON = "CPF não encontrado."
INVALID_PERIOD_REASON = "Data inválida."
INVALID_CONTENT_REASON = "Arquivo PDF inválido."
DUPLICATE_IN_BATCH_REASON = "Contracheque repetido neste lote."
ALREADY_EXISTS_REASON = "Contracheque já existe."


@dataclass(frozen=True)
class PayslipOwner:
    id: UUID
    name: str
    identifier: str


@dataclass
class PayslipFile:
    filename: str
    content: bytes
    status: PayslipFileStatus
    reason: Optional[str] = None
    owner: Optional[PayslipOwner] = None
    month: Optional[int] = None
    year: Optional[int] = None
    replace: bool = False

    @property
    def period_key(self) -> Optional[Tuple[UUID, int, int]]:
        if self.owner is None or self.month is None or self.year is None:
            return None
        return (self.owner.id, self.month, self.year)


def classify_payslip_files(
    files: Iterable[Tuple[str, bytes]],
    owners_by_identifier: Dict[str, PayslipOwner],
    existing_periods: Set[Tuple[UUID, int, int]],
    identifier_length: int,
    min_year: int,
    today: date,
    check_pdf: Callable[[bytes], bool] = is_readable_pdf,
) -> List[PayslipFile]:
    """
    Classify files in upload order.

    Checks run name, owner, period, content, then duplicates; the first failing
    check decides the reason. Within one batch the first file for a period wins.
    """
    classified: List[PayslipFile] = []
    seen: Set[Tuple[UUID, int, int]] = set()

    for filename, content in files:
        parsed = match_filename(filename, identifier_length)
        if parsed is None:
            classified.append(PayslipFile(filename, content, PayslipFileStatus.ERROR, INVALID_NAME_REASON))
            continue

        owner = owners_by_identifier.get(parsed.identifier)
        if owner is None:
            classified.append(PayslipFile(filename, content, PayslipFileStatus.ERROR, UNKNOWN_EMPLOYEE_REASON))
            continue

        item = PayslipFile(filename, content, PayslipFileStatus.READY, owner=owner, month=parsed.month, year=parsed.year)
        if not 1 <= parsed.month <= 12 or not min_year <= parsed.year <= today.year + 1:
            item.status, item.reason = PayslipFileStatus.ERROR, INVALID_PERIOD_REASON
        elif not check_pdf(content):
            item.status, item.reason = PayslipFileStatus.ERROR, INVALID_CONTENT_REASON
        elif item.period_key in seen:
            item.status, item.reason = PayslipFileStatus.ERROR, DUPLICATE_IN_BATCH_REASON
        elif item.period_key in existing_periods:
            item.status, item.reason = PayslipFileStatus.DUPLICATE, ALREADY_EXISTS_REASON

        if item.status != PayslipFileStatus.ERROR:
            seen.add(item.period_key)
        classified.append(item)

    return classified


def owner_identifiers(files: Iterable[Tuple[str, bytes]], identifier_length: int) -> Set[str]:
    """Identifiers referenced by well-formed filenames, for the owner lookup."""
    identifiers = set()
    for filename, _ in files:
        parsed = match_filename(filename, identifier_length)
        if parsed is not None:
            identifiers.add(parsed.identifier)
    return identifiers
