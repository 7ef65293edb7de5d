"""
Userbase Backend - User SQLAlchemy Model
=========================================

What:  ORM model representing the `users` table.
How:   Inherits from the shared DeclarativeBase; `Database.create_all()`
       creates the table when DATABASE_SYNCHRONIZE is enabled.
Who:   Used by UserRepository for every CRUD operation.

Table Design:
    - Integer autoincrement primary key, assigned by the database on insert
    - created_at / updated_at: timezone-aware, filled in Python so the values
      are available right after flush without a second round trip
    - Index on created_at: serves the newest-first listing
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A single user record.

    Lifecycle:
        1. Created by POST /api/users (id and both timestamps assigned)
        2. Partially updated by PUT /api/users/{id} (updated_at refreshed)
        3. Hard-deleted by DELETE /api/users/{id}
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Neither format nor uniqueness is enforced here
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    age: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    # Repository.update() sets this explicitly; onupdate covers any other writer
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_users_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
