"""
EmployeeRepository: read access to the HR employee directory.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.models import Employee
from opsdesk.repositories.base import BaseRepository


class EmployeeRepository(BaseRepository[Employee]):
    """Repository for Employee records. The access service only reads them."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Employee)
