"""
Ticket Domain Entities
======================

Pure Python business objects for the ticket context.

The Ticket row is owned by the store; everything else works on snapshots
and writes back through explicit field patches.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict

from support_desk.config import TicketStatus, TicketPriority, VALID_STATUSES


def compose_ticket_text(subject: str, body: str) -> str:
    """Text that is embedded for a ticket."""
    return f"{subject}\n\n{body}"


@dataclass
class Ticket:
    """
    One customer support message plus its derived state.

    ``embedding`` is only populated when explicitly requested from the store.
    """
    id: Optional[int]  # None until persisted
    customer_name: str
    email: str
    subject: str
    body: str
    category: Optional[str] = None
    priority: Optional[str] = TicketPriority.MEDIUM
    status: str = TicketStatus.NEW
    ai_response: Optional[str] = None
    escalation_reason: Optional[str] = None
    embedding: Optional[List[float]] = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def full_text(self) -> str:
        return compose_ticket_text(self.subject, self.body)

    @property
    def has_draft(self) -> bool:
        """True when there is a non-empty reply to approve."""
        return bool(self.ai_response and self.ai_response.strip())


@dataclass
class SimilarTicket:
    """A neighbouring ticket returned by a similarity query."""
    id: int
    similarity: float
    customer_name: str
    email: str
    subject: str
    body: str
    category: Optional[str]
    priority: Optional[str]
    status: str
    ai_response: Optional[str]
    received_at: datetime

    @classmethod
    def from_ticket(cls, ticket: Ticket, similarity: float) -> "SimilarTicket":
        return cls(
            id=ticket.id,
            similarity=similarity,
            customer_name=ticket.customer_name,
            email=ticket.email,
            subject=ticket.subject,
            body=ticket.body,
            category=ticket.category,
            priority=ticket.priority,
            status=ticket.status,
            ai_response=ticket.ai_response,
            received_at=ticket.received_at,
        )


@dataclass
class DraftContext:
    """One past case injected into the draft prompt."""
    subject: str
    body: str
    prior_response: Optional[str] = None


@dataclass
class TicketProcessingResult:
    """Outcome of one processing run."""
    ticket_id: int
    category: str
    priority: str
    status: str
    similar_tickets: List[SimilarTicket] = field(default_factory=list)


@dataclass
class EnhancedTicketView:
    """Ticket plus similar cases and the actions offered for its state."""
    ticket: Ticket
    similar_tickets: List[SimilarTicket]
    suggested_actions: List[str]
    can_generate_draft: bool

    @property
    def has_similar_tickets(self) -> bool:
        return len(self.similar_tickets) > 0


@dataclass
class TicketPage:
    """One page of a filtered ticket listing."""
    tickets: List[Ticket]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def pagination(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass
class WorkflowStats:
    """Ticket counts per status plus the unfiltered total."""
    by_status: Dict[str, int]
    total: int

    def to_dict(self) -> Dict[str, int]:
        counts = {status: self.by_status.get(status, 0) for status in VALID_STATUSES}
        counts["total"] = self.total
        return counts
