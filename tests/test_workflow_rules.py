import pytest

from support_desk.config import TicketPriority, TicketStatus, VALID_STATUSES
from support_desk.tickets.domain import TicketWorkflow, WorkflowOperation


def test_processed_high_priority_suggests_prioritizing():
    actions = TicketWorkflow.suggested_actions(TicketStatus.PROCESSED, TicketPriority.HIGH)
    assert actions == ["Generate AI Draft", "View Similar Tickets", "Prioritize Response"]


def test_processed_medium_priority():
    actions = TicketWorkflow.suggested_actions(TicketStatus.PROCESSED, TicketPriority.MEDIUM)
    assert actions == ["Generate AI Draft", "View Similar Tickets"]


def test_suggested_actions_per_status():
    assert TicketWorkflow.suggested_actions(TicketStatus.NEW, None) == ["Wait for auto-processing"]
    assert TicketWorkflow.suggested_actions(TicketStatus.AI_DRAFTED, TicketPriority.LOW) == [
        "Review AI Response", "Edit Response", "Approve and Send", "Escalate to Human",
    ]
    assert TicketWorkflow.suggested_actions(TicketStatus.PROCESSING_FAILED, None) == [
        "Retry Processing", "Manual Classification",
    ]
    for status in (TicketStatus.SENT, TicketStatus.ESCALATED, TicketStatus.PENDING_REVIEW):
        assert TicketWorkflow.suggested_actions(status, TicketPriority.HIGH) == []


@pytest.mark.parametrize("status", VALID_STATUSES)
def test_can_generate_draft(status):
    expected = status in (TicketStatus.NEW, TicketStatus.PROCESSED, TicketStatus.AI_DRAFTED)
    assert TicketWorkflow.can_generate_draft(status) is expected


@pytest.mark.parametrize("status", VALID_STATUSES)
def test_every_operation_is_permitted_from_any_status(status):
    for operation in (
        WorkflowOperation.APPROVE,
        WorkflowOperation.ESCALATE,
        WorkflowOperation.GENERATE_DRAFT,
        WorkflowOperation.SET_STATUS,
    ):
        assert TicketWorkflow.can_perform(operation, status)
        TicketWorkflow.assert_can_perform(operation, status)


def test_unusual_transitions_are_not_intended():
    assert not TicketWorkflow.is_intended(WorkflowOperation.ESCALATE, TicketStatus.SENT)
    assert not TicketWorkflow.is_intended(WorkflowOperation.APPROVE, TicketStatus.NEW)
    assert TicketWorkflow.is_intended(WorkflowOperation.APPROVE, TicketStatus.PENDING_REVIEW)


def test_target_status():
    assert TicketWorkflow.target_status(WorkflowOperation.APPROVE) == TicketStatus.SENT
    assert TicketWorkflow.target_status(WorkflowOperation.PROCESS) == TicketStatus.PROCESSED
    assert TicketWorkflow.target_status(WorkflowOperation.UPDATE_DRAFT) is None
