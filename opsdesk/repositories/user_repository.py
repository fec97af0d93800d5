"""
UserRepository for User-specific database operations.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.models import User
from opsdesk.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model with user-specific queries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_username(self, username: str) -> Optional[User]:
        """Find user by username."""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Find user by email (case-insensitive)."""
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_by_employee_id(self, employee_id: int) -> Optional[User]:
        """Find the user linked to an employee."""
        result = await self.session.execute(
            select(User).where(User.employee_id == employee_id)
        )
        return result.scalar_one_or_none()

    async def search_users(
        self, query: str, skip: int = 0, limit: int = 100
    ) -> List[User]:
        """Search users by username or email."""
        search_pattern = f"%{query}%"
        result = await self.session.execute(
            select(User).where(
                or_(
                    User.username.ilike(search_pattern),
                    User.email.ilike(search_pattern)
                )
            ).order_by(User.username).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_role(self, role_id: UUID) -> int:
        """Count users whose role_id references a role."""
        return await self.count({"role_id": role_id})

    async def count_by_roles(self, role_ids: List[UUID]) -> Dict[UUID, int]:
        """Count linked users for several roles in one grouped query."""
        if not role_ids:
            return {}
        result = await self.session.execute(
            select(User.role_id, func.count())
            .where(User.role_id.in_(role_ids))
            .group_by(User.role_id)
        )
        counts = dict(result.all())
        return {role_id: counts.get(role_id, 0) for role_id in role_ids}

    async def update_if_version(
        self, user_id: UUID, expected_version: Optional[int], **values
    ) -> Optional[User]:
        """
        Update a user and bump its version in the same statement.

        The increment is computed by the database, so concurrent writers
        never store the same version twice.

        Args:
            user_id: User ID
            expected_version: Version the caller last read, or None to skip the check
            **values: Field values to update

        Returns:
            Updated user, or None when the row changed underneath the caller
        """
        conditions = [User.id == user_id]
        if expected_version is not None:
            conditions.append(User.version == expected_version)

        result = await self.session.execute(
            update(User)
            .where(*conditions)
            .values(version=User.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        if result.rowcount == 0:
            return None
        user = await self.get_by_id(user_id)
        await self.session.refresh(user)
        return user

    async def update_last_login(self, user_id: UUID) -> None:
        """Update last_login timestamp to current time."""
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(last_login=datetime.now(timezone.utc).replace(tzinfo=None))
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
