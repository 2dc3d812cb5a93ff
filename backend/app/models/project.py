"""
OwnerGate Backend: Project SQLAlchemy Model
============================================

What:  ORM model for the `projects` table.
Who:   Read and written only through AccessControlService.

Ownership:
    `user_id` is the owning key. It is set from the caller identity on
    create and is never reassigned afterwards. The update/delete
    check-then-act sequence relies on that.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

PROJECT_STATUSES = ("PLANNING", "IN_PROGRESS", "COMPLETED", "ON_HOLD", "CANCELLED")


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="PLANNING",
        server_default=text("'PLANNING'"),
    )

    due_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # No FK cascade on purpose: deleting a user must not silently remove their projects
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Every non-admin query filters on user_id
    __table_args__ = (
        Index("idx_projects_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, user_id={self.user_id}, status='{self.status}')>"
