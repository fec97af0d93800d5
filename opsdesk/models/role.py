"""
Role model: a named permission bundle used as a provisioning template.
"""
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from opsdesk.models.base import Base, TimestampMixin


class Role(Base, TimestampMixin):
    """
    Role model.

    Users copy a role's permissions at provisioning time and never re-read
    them afterwards, so editing a role leaves existing users untouched.
    """
    __tablename__ = "roles"

    # Primary key
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    # Role fields
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    permissions: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    users: Mapped[List["User"]] = relationship(
        "User",
        back_populates="role",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"
