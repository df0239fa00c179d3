"""
Roster gateway: the store operations the import engine depends on.

The engine only sees the RosterGateway protocol. SqlRosterGateway implements
it on the user table and is the final authority on uniqueness: each row is
written inside its own SAVEPOINT and re-checked against the ACTIVE roster, so
a row that raced another writer fails alone.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import LogAction
from app.models.user import User, UserStatus
from app.repositories.activity_log_repository import ActivityLogRepository
from app.repositories.user_repository import UserRepository
from app.schemas.employee_import import CandidateRecord, ImportErrorCode, RowError
from app.schemas.user import RosterEntry, UserCreate

logger = logging.getLogger(__name__)


class RosterOperationError(Exception):
    """A roster read or write the store refused or could not perform."""


@dataclass(frozen=True)
class CreateManyResult:
    created: List[RosterEntry] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


class RosterGateway(Protocol):
    """Interface the import engine uses to reach the roster."""

    async def load_active_roster(self) -> List[RosterEntry]:
        ...

    async def highest_short_id(self) -> int:
        ...

    async def deactivate(self, entry_id: UUID) -> None:
        ...

    async def create_many(self, candidates: List[CandidateRecord]) -> CreateManyResult:
        ...


def to_roster_entry(user: User) -> RosterEntry:
    return RosterEntry(
        id=user.id,
        name=user.name,
        email=user.email,
        short_id=user.matricula,
        status=user.status,
    )


def creation_error(candidate: CandidateRecord, reason: str) -> RowError:
    return RowError(
        row_number=candidate.row_number,
        code=ImportErrorCode.CREATION_FAILED,
        reason=reason,
        data={"Nome Completo": candidate.name, "Email": candidate.email, "Matrícula": candidate.short_id},
    )


class SqlRosterGateway:
    """RosterGateway backed by the user table, writing activity log entries."""

    def __init__(self, db: AsyncSession, actor: Optional[User] = None):
        self.db = db
        self.actor = actor
        self.users = UserRepository(db)
        self.activity = ActivityLogRepository(db)

    async def _log(self, action: str, details: str) -> None:
        await self.activity.add(
            action=action,
            details=details,
            admin_id=self.actor.id if self.actor else None,
            admin_name=self.actor.name if self.actor else None,
        )

    async def load_active_roster(self) -> List[RosterEntry]:
        try:
            users = await self.users.list_active()
        except SQLAlchemyError as exc:
            raise RosterOperationError(f"Could not load the active roster: {exc}") from exc
        return [to_roster_entry(u) for u in users]

    async def highest_short_id(self) -> int:
        try:
            return await self.users.highest_matricula()
        except SQLAlchemyError as exc:
            raise RosterOperationError(f"Could not read the highest matricula: {exc}") from exc

    async def deactivate(self, entry_id: UUID) -> None:
        try:
            async with self.db.begin_nested():
                user = await self.users.set_status(entry_id, UserStatus.INACTIVE)
                if user is None:
                    raise RosterOperationError(f"User {entry_id} not found")
                await self._log(
                    LogAction.UPDATE_USER_STATUS,
                    f"Alterou o status de '{user.name}' para {UserStatus.INACTIVE}.",
                )
        except SQLAlchemyError as exc:
            raise RosterOperationError(f"Could not deactivate user {entry_id}: {exc}") from exc

    async def create_many(self, candidates: List[CandidateRecord]) -> CreateManyResult:
        created: List[RosterEntry] = []
        errors: List[RowError] = []

        for candidate in candidates:
            try:
                async with self.db.begin_nested():
                    reason = await self._uniqueness_violation(candidate)
                    if reason:
                        errors.append(creation_error(candidate, reason))
                        continue
                    user = await self.users.create(
                        UserCreate(
                            name=candidate.name,
                            email=candidate.email,
                            matricula=candidate.short_id,
                            birth_date=candidate.birth_date,
                            emergency_phone=candidate.phone,
                        )
                    )
            except IntegrityError as exc:
                logger.warning("Row %s rejected by the database: %s", candidate.row_number, exc.orig)
                errors.append(creation_error(candidate, "Email ou Matrícula já existem."))
                continue
            except SQLAlchemyError as exc:
                logger.error("Row %s could not be created: %s", candidate.row_number, exc)
                errors.append(creation_error(candidate, "Falha ao cadastrar usuário."))
                continue
            created.append(to_roster_entry(user))

        if created:
            await self._log(LogAction.IMPORT_USERS, f"Importou {len(created)} novo(s) usuário(s).")
        return CreateManyResult(created=created, errors=errors)

    async def _uniqueness_violation(self, candidate: CandidateRecord) -> Optional[str]:
        if await self.users.get_active_by_email(candidate.email) is not None:
            return "Email já cadastrado."
        if candidate.short_id and await self.users.get_active_by_matricula(candidate.short_id) is not None:
            return "Matrícula já cadastrada."
        return None
