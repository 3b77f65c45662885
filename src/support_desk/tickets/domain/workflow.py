"""
Ticket Workflow Rules
=====================

Per-operation transition table for the ticket lifecycle.

The lifecycle is deliberately loose: every operation may be invoked from any
status (``allowed_from=None``). ``intended_from`` names the statuses each
operation is meant for, so callers can flag unusual transitions without
refusing them. The only hard precondition (approve needs a draft) is a
property of the ticket's data, not its status, and is checked by the
workflow service.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from support_desk.config import TicketStatus, TicketPriority
from support_desk.core import InvalidOperationException


class WorkflowOperation(str):
    """Operations that read or move a ticket's status."""
    PROCESS = "process"
    CLASSIFY = "classify"
    GENERATE_DRAFT = "generate_draft"
    UPDATE_DRAFT = "update_draft"
    APPROVE = "approve"
    ESCALATE = "escalate"
    SET_PENDING_REVIEW = "set_pending_review"
    SET_STATUS = "set_status"


@dataclass(frozen=True)
class TransitionRule:
    """
    allowed_from: statuses the operation accepts (None = any)
    intended_from: statuses the operation is designed for
    target: status written on success (None = unchanged or caller-chosen)
    """
    intended_from: FrozenSet[str]
    target: Optional[str]
    allowed_from: Optional[FrozenSet[str]] = None


class TicketWorkflow:
    """Transition table and the derived view helpers."""

    _RULES: Dict[str, TransitionRule] = {
        WorkflowOperation.PROCESS: TransitionRule(
            intended_from=frozenset({TicketStatus.NEW, TicketStatus.PROCESSING_FAILED}),
            target=TicketStatus.PROCESSED,
        ),
        WorkflowOperation.CLASSIFY: TransitionRule(
            intended_from=frozenset({
                TicketStatus.NEW, TicketStatus.PROCESSED,
                TicketStatus.PROCESSING_FAILED, TicketStatus.AI_DRAFTED,
            }),
            target=None,
        ),
        WorkflowOperation.GENERATE_DRAFT: TransitionRule(
            intended_from=frozenset({
                TicketStatus.NEW, TicketStatus.PROCESSED, TicketStatus.AI_DRAFTED,
            }),
            target=TicketStatus.AI_DRAFTED,
        ),
        WorkflowOperation.UPDATE_DRAFT: TransitionRule(
            intended_from=frozenset({TicketStatus.AI_DRAFTED, TicketStatus.PENDING_REVIEW}),
            target=None,
        ),
        WorkflowOperation.APPROVE: TransitionRule(
            intended_from=frozenset({TicketStatus.AI_DRAFTED, TicketStatus.PENDING_REVIEW}),
            target=TicketStatus.SENT,
        ),
        WorkflowOperation.ESCALATE: TransitionRule(
            intended_from=frozenset({
                TicketStatus.NEW, TicketStatus.PROCESSED, TicketStatus.AI_DRAFTED,
                TicketStatus.PENDING_REVIEW, TicketStatus.PROCESSING_FAILED,
            }),
            target=TicketStatus.ESCALATED,
        ),
        WorkflowOperation.SET_PENDING_REVIEW: TransitionRule(
            intended_from=frozenset({TicketStatus.AI_DRAFTED}),
            target=TicketStatus.PENDING_REVIEW,
        ),
        WorkflowOperation.SET_STATUS: TransitionRule(
            intended_from=frozenset({
                TicketStatus.NEW, TicketStatus.PROCESSED, TicketStatus.AI_DRAFTED,
                TicketStatus.PENDING_REVIEW, TicketStatus.SENT, TicketStatus.ESCALATED,
                TicketStatus.PROCESSING_FAILED,
            }),
            target=None,
        ),
    }

    @classmethod
    def rule(cls, operation: str) -> TransitionRule:
        return cls._RULES[operation]

    @classmethod
    def target_status(cls, operation: str) -> Optional[str]:
        return cls._RULES[operation].target

    @classmethod
    def can_perform(cls, operation: str, status: str) -> bool:
        allowed = cls._RULES[operation].allowed_from
        return allowed is None or status in allowed

    @classmethod
    def is_intended(cls, operation: str, status: str) -> bool:
        return status in cls._RULES[operation].intended_from

    @classmethod
    def assert_can_perform(cls, operation: str, status: str) -> None:
        if not cls.can_perform(operation, status):
            raise InvalidOperationException(
                f"Cannot {operation.replace('_', ' ')} a ticket in status '{status}'",
                {"operation": operation, "status": status}
            )

    @classmethod
    def can_generate_draft(cls, status: str) -> bool:
        return cls.is_intended(WorkflowOperation.GENERATE_DRAFT, status)

    @staticmethod
    def suggested_actions(status: str, priority: Optional[str]) -> List[str]:
        """Actions offered to an agent for a ticket, from status and priority only."""
        if status == TicketStatus.NEW:
            return ["Wait for auto-processing"]
        if status == TicketStatus.PROCESSED:
            actions = ["Generate AI Draft", "View Similar Tickets"]
            if priority == TicketPriority.HIGH:
                actions.append("Prioritize Response")
            return actions
        if status == TicketStatus.AI_DRAFTED:
            return ["Review AI Response", "Edit Response", "Approve and Send", "Escalate to Human"]
        if status == TicketStatus.PROCESSING_FAILED:
            return ["Retry Processing", "Manual Classification"]
        return []
