"""
Employee model.

Rows belong to the HR directory; the access service reads them and links
at most one User to each.
"""
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from opsdesk.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee directory record."""
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Older records carry a single name, newer ones split it
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Relationships
    user: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="employee",
        uselist=False,
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, email={self.email})>"
