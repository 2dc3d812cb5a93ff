"""
OwnerGate Backend: User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Why:   Users are the tenants. Every other record is owned by exactly one user.
Who:   Read and updated through AccessControlService; created by admins or bootstrap.

Ownership:
    A user "owns" only their own row, so the owning key of this entity is
    its primary key `id` rather than a foreign key.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"


class User(Base):
    """A tenant account. `role` decides whether the admin bypass applies."""

    __tablename__ = "users"

    # String ids: callers and fixtures may supply readable ids such as "test-user-1"
    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # USER or ADMIN; anything else is treated as USER by identity resolution
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ROLE_USER,
        server_default=text("'USER'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
