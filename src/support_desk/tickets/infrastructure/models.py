"""
Ticket Infrastructure Models
=============================

SQLAlchemy ORM models for the ticket context.

Embeddings are not stored here; they live in the similarity index keyed by
ticket id.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from support_desk.infrastructure.database import Base
from support_desk.config import TicketStatus, TicketPriority


class TicketModel(Base):
    """Database model for the Ticket entity."""
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Customer message, immutable after creation
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    # Derived state
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    priority: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, default=TicketPriority.MEDIUM
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=TicketStatus.NEW, index=True
    )
    ai_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    escalation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
