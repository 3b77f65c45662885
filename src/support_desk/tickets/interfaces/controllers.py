"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for the ticket workflow.

Controllers only translate HTTP to TicketService calls. Application
exceptions are mapped to status codes by the handlers registered in main.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from support_desk.config import settings
from support_desk.shared.api.responses import success_response
from support_desk.shared.infrastructure.logging import get_logger
from support_desk.tickets.application import TicketService
from support_desk.tickets.application.dto import (
    ClassificationResponse,
    CreateTicketRequest,
    DraftResponse,
    EnhancedTicketResponse,
    EscalateRequest,
    PaginationInfo,
    TicketListResponse,
    TicketResponse,
    UpdateDraftRequest,
    UpdateStatusRequest,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/tickets", tags=["Tickets"])


# ========== Dependencies ==========

def get_ticket_service(request: Request) -> TicketService:
    """Ticket service wired during application startup."""
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ticket service not available - LLM provider not configured"
        )
    return service


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "unknown")


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, mode="json")


# ========== Collection routes ==========

@router.get("", summary="List tickets with optional status/category filters")
async def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: TicketService = Depends(get_ticket_service)
):
    result = await service.list_tickets(
        status=status_filter, category=category, page=page, limit=limit
    )
    body = TicketListResponse(
        tickets=[TicketResponse.from_domain(t) for t in result.tickets],
        pagination=PaginationInfo(**result.pagination),
    )
    return success_response(_dump(body), "Tickets retrieved successfully")


@router.get("/stats", summary="Ticket counts per workflow status")
async def get_workflow_stats(service: TicketService = Depends(get_ticket_service)):
    stats = await service.get_workflow_stats()
    return success_response(stats.to_dict(), "Workflow statistics retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit a new ticket")
async def create_ticket(
    request: Request,
    payload: CreateTicketRequest,
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.create_ticket(
        customer_name=payload.customer_name,
        email=payload.email,
        subject=payload.subject,
        body=payload.body,
        category=payload.category,
    )
    logger.info(
        "Ticket submitted",
        extra={"correlation_id": _correlation_id(request), "ticket_id": ticket.id}
    )
    return success_response(
        _dump(TicketResponse.from_domain(ticket)),
        "Ticket created successfully, processing in background"
    )


# ========== Single-ticket reads ==========

@router.get("/{ticket_id}", summary="Get a ticket")
async def get_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.get_ticket(ticket_id)
    return success_response(_dump(TicketResponse.from_domain(ticket)), "Ticket retrieved successfully")


@router.get("/{ticket_id}/enhanced", summary="Ticket with similar tickets and suggested actions")
async def get_enhanced_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    view = await service.get_enhanced_ticket(ticket_id)
    return success_response(
        _dump(EnhancedTicketResponse.from_view(view)),
        "Enhanced ticket retrieved successfully"
    )


# ========== AI operations ==========

@router.post("/{ticket_id}/classify", summary="Reclassify a ticket now")
async def classify_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    category = await service.classify_ticket(ticket_id)
    return success_response(
        _dump(ClassificationResponse(ticket_id=ticket_id, category=category)),
        "Ticket classified successfully"
    )


@router.post("/{ticket_id}/generateDraft", summary="Generate an AI reply draft")
async def generate_draft(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    draft = await service.generate_draft(ticket_id)
    return success_response(
        _dump(DraftResponse(ticket_id=ticket_id, ai_response=draft)),
        "Draft generated successfully"
    )


@router.post("/{ticket_id}/regenerateDraft", summary="Reclassify, then draft again")
async def regenerate_draft(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    draft = await service.regenerate_draft(ticket_id)
    return success_response(
        _dump(DraftResponse(ticket_id=ticket_id, ai_response=draft)),
        "Draft regenerated successfully"
    )


@router.post(
    "/{ticket_id}/reprocess",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Run automated processing again"
)
async def reprocess_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.reprocess_ticket(ticket_id)
    return success_response(
        _dump(TicketResponse.from_domain(ticket)),
        "Ticket reprocessing scheduled"
    )


# ========== Workflow ==========

@router.put("/{ticket_id}/edit", summary="Replace the AI response text")
async def update_draft(
    ticket_id: int,
    payload: UpdateDraftRequest,
    service: TicketService = Depends(get_ticket_service)
):
    await service.update_draft(ticket_id, payload.ai_response)
    return success_response(None, "Ticket response updated successfully")


@router.put("/{ticket_id}/approve", summary="Approve and send the AI response")
async def approve_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.approve_ticket(ticket_id)
    return success_response(_dump(TicketResponse.from_domain(ticket)), "Ticket approved successfully")


@router.put("/{ticket_id}/escalate", summary="Escalate to a human agent")
async def escalate_ticket(
    ticket_id: int,
    payload: Optional[EscalateRequest] = None,
    service: TicketService = Depends(get_ticket_service)
):
    reason = payload.reason if payload else None
    ticket = await service.escalate_ticket(ticket_id, reason)
    return success_response(_dump(TicketResponse.from_domain(ticket)), "Ticket escalated successfully")


@router.put("/{ticket_id}/pending-review", summary="Mark the draft as pending review")
async def set_pending_review(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    ticket = await service.set_pending_review(ticket_id)
    return success_response(
        _dump(TicketResponse.from_domain(ticket)), "Ticket marked as pending review"
    )


@router.put("/{ticket_id}/status", summary="Set an arbitrary valid status")
async def set_status(
    ticket_id: int,
    payload: UpdateStatusRequest,
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.set_status(ticket_id, payload.status)
    return success_response(_dump(TicketResponse.from_domain(ticket)), "Ticket status updated")
