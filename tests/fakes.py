"""
In-memory roster used by the unit and API tests in place of the user table.
"""

import uuid
from typing import List, Optional, Set
from uuid import UUID

from app.models.user import UserStatus
from app.schemas.employee_import import CandidateRecord
from app.schemas.user import RosterEntry
from app.services.employee_import import CreateManyResult, RosterOperationError
from app.services.employee_import.gateway import creation_error


def roster_entry(email: str, short_id: str, name: str = "Existente", status: str = UserStatus.ACTIVE) -> RosterEntry:
    return RosterEntry(id=uuid.uuid4(), name=name, email=email, short_id=short_id, status=status)


class InMemoryRosterGateway:
    """RosterGateway over a list, enforcing the same active-only uniqueness as the database."""

    def __init__(self, entries: Optional[List[RosterEntry]] = None):
        self.entries: List[RosterEntry] = list(entries or [])
        self.fail_deactivation: Set[UUID] = set()
        self.fail_creation = False
        self.fail_roster = False
        self.calls: List[str] = []
        self.created_batches: List[List[CandidateRecord]] = []

    def active(self) -> List[RosterEntry]:
        return [e for e in self.entries if e.is_active]

    def get(self, entry_id: UUID) -> RosterEntry:
        return next(e for e in self.entries if e.id == entry_id)

    async def load_active_roster(self) -> List[RosterEntry]:
        self.calls.append("load_active_roster")
        if self.fail_roster:
            raise RosterOperationError("roster unavailable")
        return self.active()

    async def highest_short_id(self) -> int:
        numeric = [int(e.short_id) for e in self.entries if e.short_id.isdigit()]
        return max(numeric, default=0)

    async def deactivate(self, entry_id: UUID) -> None:
        self.calls.append(f"deactivate:{entry_id}")
        if entry_id in self.fail_deactivation:
            raise RosterOperationError(f"cannot deactivate {entry_id}")
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                self.entries[i] = entry.model_copy(update={"status": UserStatus.INACTIVE})
                return
        raise RosterOperationError(f"User {entry_id} not found")

    async def create_many(self, candidates: List[CandidateRecord]) -> CreateManyResult:
        self.calls.append("create_many")
        self.created_batches.append(list(candidates))
        if self.fail_creation:
            raise RosterOperationError("store rejected the batch")

        created, errors = [], []
        for candidate in candidates:
            active = self.active()
            if any(e.email.lower() == candidate.email_key for e in active):
                errors.append(creation_error(candidate, "Email já cadastrado."))
                continue
            if any(e.short_id == candidate.short_id for e in active):
                errors.append(creation_error(candidate, "Matrícula já cadastrada."))
                continue
            entry = RosterEntry(
                id=uuid.uuid4(),
                name=candidate.name,
                email=candidate.email,
                short_id=candidate.short_id,
            )
            self.entries.append(entry)
            created.append(entry)
        return CreateManyResult(created=created, errors=errors)
