"""
User repository - database operations for User.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import BigInteger, cast, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserStatus
from app.schemas.user import UserCreate


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_active(self) -> List[User]:
        """All ACTIVE users, ordered by name."""
        result = await self.db.execute(
            select(User)
            .where(User.status == UserStatus.ACTIVE)
            .order_by(User.name.asc())
        )
        return list(result.scalars().all())

    async def get_active_by_email(self, email: str) -> Optional[User]:
        """Get the ACTIVE user holding an email (case-insensitive email)."""
        if not email or not email.strip():
            return None
        email_clean = email.strip().lower()
        result = await self.db.execute(
            select(User).where(
                User.status == UserStatus.ACTIVE,
                func.lower(User.email) == email_clean,
            )
        )
        return result.scalars().first()

    async def get_active_by_matricula(self, matricula: str) -> Optional[User]:
        """Get the ACTIVE user holding a matricula."""
        result = await self.db.execute(
            select(User).where(
                User.status == UserStatus.ACTIVE,
                User.matricula == matricula,
            )
        )
        return result.scalars().first()

    async def list_by_cpfs(self, cpfs: Iterable[str]) -> List[User]:
        """Users (any status) whose CPF is in the given set."""
        cpf_list = sorted({c for c in cpfs if c})
        if not cpf_list:
            return []
        result = await self.db.execute(
            select(User).where(User.cpf.in_(cpf_list))
        )
        return list(result.scalars().all())

    async def highest_matricula(self) -> int:
        """
        Highest numeric matricula across every user, active or not.

        Non-numeric matriculas are ignored; an empty table yields 0.
        """
        result = await self.db.execute(
            select(func.max(cast(User.matricula, BigInteger))).where(
                User.matricula.regexp_match(r"^[0-9]+$")
            )
        )
        value = result.scalar_one_or_none()
        return int(value) if value is not None else 0

    async def create(self, data: UserCreate) -> User:
        """Create a new user."""
        user = User(**data.model_dump())
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def set_status(self, user_id: UUID, status: str) -> Optional[User]:
        """Change a user's roster status. Returns None when the user does not exist."""
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(status=status)
            .returning(User.id)
        )
        if result.scalar_one_or_none() is None:
            return None
        return await self.get_by_id(user_id)
