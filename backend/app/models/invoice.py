"""
OwnerGate Backend: Invoice SQLAlchemy Model
============================================

What:  ORM model for the `invoices` table.
Ownership: `user_id`, injected from the caller identity on create.

References:
    `client_id` points at a ClientProfile. For non-admin writes the access
    layer requires that profile to belong to the caller (INVOICE_POLICY.references).
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import TIMESTAMP, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

INVOICE_STATUSES = ("DRAFT", "SENT", "PAID", "OVERDUE", "CANCELLED")


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    invoice_number: Mapped[str] = mapped_column(String(64), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="DRAFT",
        server_default=text("'DRAFT'"),
    )

    due_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    client_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("client_profiles.id"),
        nullable=True,
    )

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

    __table_args__ = (
        Index("idx_invoices_user_id", "user_id"),
        Index("idx_invoices_client_id", "client_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, number='{self.invoice_number}', "
            f"user_id={self.user_id}, status='{self.status}')>"
        )
