"""
RoleRepository for Role-specific database operations.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.models import Role
from opsdesk.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Repository for Role model with role-specific queries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Role)

    async def get_by_name(self, name: str) -> Optional[Role]:
        """Find role by exact name."""
        result = await self.session.execute(
            select(Role).where(Role.name == name)
        )
        return result.scalar_one_or_none()

    async def list_ordered(self, skip: int = 0, limit: int = 100) -> List[Role]:
        """List roles ordered by name."""
        result = await self.session.execute(
            select(Role).order_by(Role.name).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
