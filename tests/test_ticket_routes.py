from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from support_desk.config import TicketCategory, TicketPriority, TicketStatus
from support_desk.core import (
    DraftGenerationException,
    InvalidOperationException,
    ProviderTimeoutException,
    ResourceNotFoundException,
    ValidationException,
)
from support_desk.main import create_app
from support_desk.tickets.domain import EnhancedTicketView, SimilarTicket, Ticket, TicketPage, WorkflowStats
from support_desk.tickets.interfaces import get_ticket_service


def _make_ticket(**overrides) -> Ticket:
    values = dict(
        id=1,
        customer_name="Lisa Chen",
        email="lisa.chen@startup.io",
        subject="Can't Login to My Account",
        body="I keep getting an error message.",
        category=TicketCategory.TECHNICAL_ISSUE,
        priority=TicketPriority.MEDIUM,
        status=TicketStatus.PROCESSED,
        received_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Ticket(**values)


@pytest.fixture
def ticket_client():
    app = create_app()
    service = AsyncMock()

    async def override_service():
        return service

    app.dependency_overrides[get_ticket_service] = override_service
    client = TestClient(app)
    try:
        yield client, service
    finally:
        app.dependency_overrides.clear()


def test_create_ticket_returns_created(ticket_client):
    client, service = ticket_client
    service.create_ticket.return_value = _make_ticket(status=TicketStatus.NEW, category=None)

    response = client.post(
        "/api/v1/tickets",
        json={
            "customerName": "Lisa Chen",
            "customerEmail": "lisa.chen@startup.io",
            "subject": "Can't Login to My Account",
            "message": "I keep getting an error message.",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "New"
    assert body["data"]["customerName"] == "Lisa Chen"
    assert "embedding" not in body["data"]
    service.create_ticket.assert_awaited_once_with(
        customer_name="Lisa Chen",
        email="lisa.chen@startup.io",
        subject="Can't Login to My Account",
        body="I keep getting an error message.",
        category=None,
    )


def test_create_ticket_missing_fields_is_bad_request(ticket_client):
    client, service = ticket_client

    response = client.post("/api/v1/tickets", json={"customerName": "Lisa"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    service.create_ticket.assert_not_awaited()


def test_service_validation_error_maps_to_400(ticket_client):
    client, service = ticket_client
    service.create_ticket.side_effect = ValidationException("Invalid email format")

    response = client.post(
        "/api/v1/tickets",
        json={"customerName": "A", "customerEmail": "bad-email", "subject": "S", "message": "M"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"


def test_list_tickets_returns_pagination(ticket_client):
    client, service = ticket_client
    service.list_tickets.return_value = TicketPage(
        tickets=[_make_ticket(id=i) for i in (3, 2)], page=2, limit=2, total=5
    )

    response = client.get("/api/v1/tickets", params={"status": "Processed", "page": 2, "limit": 2})

    assert response.status_code == 200
    data = response.json()["data"]
    assert [t["id"] for t in data["tickets"]] == [3, 2]
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}
    service.list_tickets.assert_awaited_once_with(status="Processed", category=None, page=2, limit=2)


def test_list_tickets_rejects_oversized_limit(ticket_client):
    client, _ = ticket_client
    assert client.get("/api/v1/tickets", params={"limit": 500}).status_code == 400


def test_get_missing_ticket_is_not_found(ticket_client):
    client, service = ticket_client
    service.get_ticket.side_effect = ResourceNotFoundException("Ticket", 42)

    response = client.get("/api/v1/tickets/42")

    assert response.status_code == 404
    assert response.json()["error"] == "ResourceNotFoundException"


def test_enhanced_ticket(ticket_client):
    client, service = ticket_client
    ticket = _make_ticket()
    similar = SimilarTicket.from_ticket(_make_ticket(id=7, ai_response="Reset link sent."), 0.91234)
    service.get_enhanced_ticket.return_value = EnhancedTicketView(
        ticket=ticket,
        similar_tickets=[similar],
        suggested_actions=["Generate AI Draft", "View Similar Tickets"],
        can_generate_draft=True,
    )

    response = client.get("/api/v1/tickets/1/enhanced")

    data = response.json()["data"]
    assert data["hasSimilarTickets"] is True
    assert data["canGenerateDraft"] is True
    assert data["similarTickets"][0]["similarity"] == 0.9123
    assert data["suggestedActions"] == ["Generate AI Draft", "View Similar Tickets"]


def test_stats(ticket_client):
    client, service = ticket_client
    service.get_workflow_stats.return_value = WorkflowStats(
        by_status={TicketStatus.NEW: 2, TicketStatus.SENT: 1}, total=3
    )

    data = client.get("/api/v1/tickets/stats").json()["data"]

    assert data["New"] == 2
    assert data["Sent"] == 1
    assert data["Escalated"] == 0
    assert data["total"] == 3


def test_generate_draft(ticket_client):
    client, service = ticket_client
    service.generate_draft.return_value = "Dear Lisa, please try resetting your password."

    response = client.post("/api/v1/tickets/1/generateDraft")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "ticketId": 1,
        "aiResponse": "Dear Lisa, please try resetting your password.",
    }


@pytest.mark.parametrize(
    "error, status_code",
    [
        (ProviderTimeoutException("draft", 30), 504),
        (DraftGenerationException(1, "model overloaded"), 502),
    ],
)
def test_draft_failures_map_to_gateway_errors(ticket_client, error, status_code):
    client, service = ticket_client
    service.generate_draft.side_effect = error

    assert client.post("/api/v1/tickets/1/generateDraft").status_code == status_code


def test_approve_without_draft_is_bad_request(ticket_client):
    client, service = ticket_client
    service.approve_ticket.side_effect = InvalidOperationException("Cannot approve ticket without AI response")

    response = client.put("/api/v1/tickets/1/approve")

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot approve ticket without AI response"


def test_edit_and_escalate(ticket_client):
    client, service = ticket_client
    service.escalate_ticket.return_value = _make_ticket(
        status=TicketStatus.ESCALATED, escalation_reason="VIP customer"
    )

    edit = client.put("/api/v1/tickets/1/edit", json={"aiResponse": "Updated reply"})
    escalate = client.put("/api/v1/tickets/1/escalate", json={"reason": "VIP customer"})

    assert edit.status_code == 200
    service.update_draft.assert_awaited_once_with(1, "Updated reply")
    assert escalate.json()["data"]["escalationReason"] == "VIP customer"
    service.escalate_ticket.assert_awaited_once_with(1, "VIP customer")


def test_reprocess_is_accepted(ticket_client):
    client, service = ticket_client
    service.reprocess_ticket.return_value = _make_ticket(status=TicketStatus.PROCESSING_FAILED)

    response = client.post("/api/v1/tickets/1/reprocess")

    assert response.status_code == 202


def test_unavailable_service_returns_503():
    client = TestClient(create_app())

    response = client.get("/api/v1/tickets/1")

    assert response.status_code == 503
    assert response.json()["success"] is False


def test_correlation_id_is_echoed(ticket_client):
    client, service = ticket_client
    service.get_ticket.return_value = _make_ticket()

    response = client.get("/api/v1/tickets/1", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"
