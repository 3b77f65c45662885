"""
Ticket Application DTOs
=======================

Pydantic models for request/response validation. Wire names are camelCase.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from support_desk.tickets.domain import EnhancedTicketView, SimilarTicket, Ticket


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either spelling."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== Request DTOs ==========

class CreateTicketRequest(CamelModel):
    """Request model for ticket submission."""
    customer_name: str = Field(..., min_length=1, max_length=255, description="Customer name")
    email: str = Field(
        ..., alias="customerEmail", min_length=3, max_length=255, description="Customer email"
    )
    subject: str = Field(..., min_length=1, max_length=500, description="Email subject")
    body: str = Field(..., alias="message", min_length=1, description="Email body")
    category: Optional[str] = Field(None, max_length=100, description="Optional initial category")

    @field_validator("body")
    @classmethod
    def validate_body_length(cls, v: str) -> str:
        """Keep prompts within model limits."""
        if len(v) > 10000:
            raise ValueError("Message too long (max 10000 characters)")
        return v


class UpdateDraftRequest(CamelModel):
    """Manual edit of the AI response."""
    ai_response: str = Field(..., description="Replacement reply text")


class EscalateRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=2000, description="Why the ticket needs a human")


class UpdateStatusRequest(CamelModel):
    status: str = Field(..., description="Target status")


# ========== Response DTOs ==========

class TicketResponse(CamelModel):
    """Ticket as returned by the API (embedding is never exposed)."""
    id: int
    customer_name: str
    email: str
    subject: str
    body: str
    category: Optional[str] = None
    priority: Optional[str] = None
    status: str
    ai_response: Optional[str] = None
    escalation_reason: Optional[str] = None
    received_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            customer_name=ticket.customer_name,
            email=ticket.email,
            subject=ticket.subject,
            body=ticket.body,
            category=ticket.category,
            priority=ticket.priority,
            status=ticket.status,
            ai_response=ticket.ai_response,
            escalation_reason=ticket.escalation_reason,
            received_at=ticket.received_at,
            updated_at=ticket.updated_at,
        )


class SimilarTicketResponse(CamelModel):
    id: int
    similarity: float
    customer_name: str
    subject: str
    body: str
    category: Optional[str] = None
    status: str
    ai_response: Optional[str] = None
    received_at: datetime

    @classmethod
    def from_domain(cls, similar: SimilarTicket) -> "SimilarTicketResponse":
        return cls(
            id=similar.id,
            similarity=round(similar.similarity, 4),
            customer_name=similar.customer_name,
            subject=similar.subject,
            body=similar.body,
            category=similar.category,
            status=similar.status,
            ai_response=similar.ai_response,
            received_at=similar.received_at,
        )


class EnhancedTicketResponse(TicketResponse):
    """Ticket plus similar cases and the actions offered for its state."""
    similar_tickets: List[SimilarTicketResponse]
    has_similar_tickets: bool
    suggested_actions: List[str]
    can_generate_draft: bool

    @classmethod
    def from_view(cls, view: EnhancedTicketView) -> "EnhancedTicketResponse":
        base = TicketResponse.from_domain(view.ticket).model_dump()
        return cls(
            **base,
            similar_tickets=[SimilarTicketResponse.from_domain(s) for s in view.similar_tickets],
            has_similar_tickets=view.has_similar_tickets,
            suggested_actions=view.suggested_actions,
            can_generate_draft=view.can_generate_draft,
        )


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class TicketListResponse(CamelModel):
    tickets: List[TicketResponse]
    pagination: PaginationInfo


class ClassificationResponse(CamelModel):
    ticket_id: int
    category: str


class DraftResponse(CamelModel):
    ticket_id: int
    ai_response: str
