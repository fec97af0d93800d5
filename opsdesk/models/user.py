"""
User model: the authentication principal of an Employee.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from opsdesk.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """
    User model for authentication and access control.

    ``permissions`` is the authoritative snapshot consulted at authorization
    time. It starts as a copy of the chosen role's permissions and may be
    edited independently afterwards. ``role_label`` is what the decision
    engine sees; ``role_id`` is only set when the label came from a Role row.
    """
    __tablename__ = "users"

    # Primary key
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    # Authentication fields
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    # Access fields
    role_label: Mapped[str] = mapped_column(String(100), nullable=False)
    role_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    permissions: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Owning employee (one user per employee)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Bumped on every access update, used for optional stale-write checks
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Relationships
    role: Mapped[Optional["Role"]] = relationship(
        "Role",
        back_populates="users",
        lazy="noload"
    )
    employee: Mapped["Employee"] = relationship(
        "Employee",
        back_populates="user",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role_label={self.role_label})>"
