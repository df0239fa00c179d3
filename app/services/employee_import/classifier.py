"""
Collision classifier for the bulk employee import.

Partitions normalized rows into valid candidates, row errors and conflicts
with the active roster. Classification is a pure function of its inputs: the
matricula sequence used for rows without one is passed in and the advanced
sequence is handed back in the result.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Set, Tuple

from app.schemas.employee_import import CandidateRecord, Conflict, ImportErrorCode, RowError
from app.services.employee_import.index import UniquenessIndex
from app.services.employee_import.normalizer import NormalizedRow

DUPLICATE_EMAIL_REASON = "Email duplicado dentro do arquivo."
DUPLICATE_SHORT_ID_REASON = "Matrícula duplicada dentro do arquivo."


@dataclass(frozen=True)
class ShortIdSequence:
    """Highest matricula handed out so far, and the zero-padded width."""

    current: int
    width: int

    def at_least(self, value: int) -> "ShortIdSequence":
        return replace(self, current=max(self.current, value))

    def advance(self) -> Tuple[str, "ShortIdSequence"]:
        next_value = self.current + 1
        return str(next_value).zfill(self.width), replace(self, current=next_value)


@dataclass(frozen=True)
class Classification:
    valid: List[CandidateRecord] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    sequence: ShortIdSequence = field(default_factory=lambda: ShortIdSequence(0, 6))

    @property
    def total_rows(self) -> int:
        return len(self.valid) + len(self.errors) + len(self.conflicts)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def _explicit_short_id_ceiling(rows: List[NormalizedRow]) -> int:
    ceiling = 0
    for row in rows:
        if isinstance(row, CandidateRecord) and row.short_id:
            ceiling = max(ceiling, int(row.short_id))
    return ceiling


def classify(
    normalized: Iterable[NormalizedRow],
    index: UniquenessIndex,
    sequence: ShortIdSequence,
) -> Classification:
    """
    Classify rows in file order.

    A duplicate inside the file is always an error. A match against the
    roster is a conflict, with a matricula match reported ahead of an email
    match. Rows that survive without a matricula get the next one from the
    sequence, which starts above every matricula in the roster and the file.
    """
    rows = list(normalized)
    sequence = sequence.at_least(_explicit_short_id_ceiling(rows))

    valid: List[CandidateRecord] = []
    errors: List[RowError] = []
    conflicts: List[Conflict] = []
    seen_emails: Set[str] = set()
    seen_short_ids: Set[str] = set()

    for row in rows:
        if isinstance(row, RowError):
            errors.append(row)
            continue

        candidate = row
        if candidate.email_key in seen_emails:
            errors.append(_duplicate(candidate, ImportErrorCode.DUPLICATE_EMAIL_IN_FILE, DUPLICATE_EMAIL_REASON))
            continue
        seen_emails.add(candidate.email_key)

        if candidate.short_id:
            if candidate.short_id in seen_short_ids:
                errors.append(_duplicate(candidate, ImportErrorCode.DUPLICATE_SHORT_ID_IN_FILE, DUPLICATE_SHORT_ID_REASON))
                continue
            seen_short_ids.add(candidate.short_id)

        by_short_id = index.lookup_by_short_id(candidate.short_id)
        by_email = index.lookup_by_email(candidate.email)

        if not candidate.short_id:
            short_id, sequence = sequence.advance()
            seen_short_ids.add(short_id)
            candidate = candidate.model_copy(update={"short_id": short_id, "short_id_synthesized": True})

        if by_short_id is not None:
            conflicts.append(Conflict(candidate=candidate, existing=by_short_id, matched_on="short_id"))
        elif by_email is not None:
            conflicts.append(Conflict(candidate=candidate, existing=by_email, matched_on="email"))
        else:
            valid.append(candidate)

    return Classification(valid=valid, errors=errors, conflicts=conflicts, sequence=sequence)


def _duplicate(candidate: CandidateRecord, code: ImportErrorCode, reason: str) -> RowError:
    data = {
        "Nome Completo": candidate.name,
        "Email": candidate.email,
        "Matrícula": candidate.short_id,
    }
    return RowError(row_number=candidate.row_number, code=code, reason=reason, data=data)
