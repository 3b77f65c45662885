"""
Workflow Controller
===================

Human-driven status changes and the per-status aggregate.
"""

from typing import Optional

from support_desk.config import TicketStatus, VALID_STATUSES
from support_desk.core import (
    InvalidOperationException,
    ResourceNotFoundException,
    ValidationException,
)
from support_desk.shared.infrastructure.logging import get_logger
from support_desk.tickets.application.store import TicketStore
from support_desk.tickets.domain import Ticket, TicketWorkflow, WorkflowOperation, WorkflowStats

logger = get_logger(__name__)


class WorkflowController:
    """
    Owns the status state machine.

    Transitions outside an operation's intended source statuses are allowed
    and logged at warning level. Approve additionally requires a draft.
    """

    def __init__(self, store: TicketStore):
        self._store = store

    async def approve(self, ticket_id: int) -> Ticket:
        """
        Mark the drafted reply as sent.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
            InvalidOperationException: If the ticket has no AI response
        """
        ticket = await self._load(ticket_id)
        if not ticket.has_draft:
            raise InvalidOperationException(
                "Cannot approve ticket without AI response",
                {"ticket_id": ticket_id, "status": ticket.status}
            )
        return await self._transition(ticket, WorkflowOperation.APPROVE, TicketStatus.SENT)

    async def escalate(self, ticket_id: int, reason: Optional[str] = None) -> Ticket:
        """Hand the ticket to a human. The reason is kept as an audit note."""
        ticket = await self._load(ticket_id)
        logger.info("Escalating ticket", extra={"ticket_id": ticket_id, "reason": reason})
        audit = {"escalation_reason": reason} if reason else {}
        return await self._transition(
            ticket, WorkflowOperation.ESCALATE, TicketStatus.ESCALATED, **audit
        )

    async def set_pending_review(self, ticket_id: int) -> Ticket:
        ticket = await self._load(ticket_id)
        return await self._transition(
            ticket, WorkflowOperation.SET_PENDING_REVIEW, TicketStatus.PENDING_REVIEW
        )

    async def set_status(self, ticket_id: int, status: str) -> Ticket:
        """
        Move a ticket to any valid status.

        Raises:
            ValidationException: If status is not one of VALID_STATUSES
            ResourceNotFoundException: If the ticket does not exist
        """
        if status not in VALID_STATUSES:
            raise ValidationException(
                f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}",
                {"status": status}
            )
        ticket = await self._load(ticket_id)
        return await self._transition(ticket, WorkflowOperation.SET_STATUS, status)

    async def get_stats(self) -> WorkflowStats:
        """Counts per status plus the unfiltered total, recomputed per call."""
        grouped = await self._store.count_by_status()
        total = await self._store.count()
        return WorkflowStats(
            by_status={status: grouped.get(status, 0) for status in VALID_STATUSES},
            total=total,
        )

    async def _load(self, ticket_id: int) -> Ticket:
        ticket = await self._store.find_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def _transition(self, ticket: Ticket, operation: str, target: str, **extra_fields) -> Ticket:
        TicketWorkflow.assert_can_perform(operation, ticket.status)
        if not TicketWorkflow.is_intended(operation, ticket.status):
            logger.warning(
                "Unusual status transition",
                extra={
                    "ticket_id": ticket.id,
                    "operation": operation,
                    "from_status": ticket.status,
                    "to_status": target,
                }
            )

        updated = await self._store.update(ticket.id, status=target, **extra_fields)
        if updated is None:
            raise ResourceNotFoundException("Ticket", ticket.id)
        logger.info(
            "Ticket status changed",
            extra={"ticket_id": ticket.id, "from_status": ticket.status, "to_status": target}
        )
        return updated
