import pytest

from support_desk.config import TicketCategory, TicketPriority, TicketStatus
from support_desk.core import LLMException, ResourceNotFoundException, ValidationException, VectorStoreException
from support_desk.tickets.application.dto import EnhancedTicketResponse


async def _create(service, **overrides):
    values = dict(
        customer_name="Sarah Johnson",
        email="sarah.j@example.com",
        subject="Payment Failed - Need Help",
        body="I tried to make a payment but it keeps failing.",
    )
    values.update(overrides)
    return await service.create_ticket(**values)


async def test_create_returns_new_ticket_and_schedules_processing(ticket_service, task_runner):
    ticket = await _create(ticket_service)

    assert ticket.id is not None
    assert ticket.status == TicketStatus.NEW
    assert ticket.priority == TicketPriority.MEDIUM
    assert len(task_runner.jobs) == 1
    _, args, name = task_runner.jobs[0]
    assert args == (ticket.id, ticket.subject, ticket.body)
    assert name == f"process-ticket-{ticket.id}"


@pytest.mark.parametrize(
    "overrides",
    [{"customer_name": ""}, {"subject": "   "}, {"body": ""}, {"email": "not-an-email"}],
)
async def test_create_validates_input(ticket_service, task_runner, overrides):
    with pytest.raises(ValidationException):
        await _create(ticket_service, **overrides)
    assert task_runner.jobs == []


async def test_end_to_end_workflow(ticket_service, task_runner, llm):
    llm.label = TicketCategory.PAYMENT_FAILURE
    ticket = await _create(ticket_service)

    await task_runner.run_all()
    processed = await ticket_service.get_ticket(ticket.id)
    assert processed.status == TicketStatus.PROCESSED
    assert processed.category == TicketCategory.PAYMENT_FAILURE
    assert processed.priority == TicketPriority.HIGH

    enhanced = await ticket_service.get_enhanced_ticket(ticket.id)
    assert enhanced.suggested_actions[-1] == "Prioritize Response"

    draft = await ticket_service.generate_draft(ticket.id)
    await ticket_service.update_draft(ticket.id, draft + " Regards.")
    await ticket_service.set_pending_review(ticket.id)
    sent = await ticket_service.approve_ticket(ticket.id)

    assert sent.status == TicketStatus.SENT
    assert sent.ai_response.endswith("Regards.")

    stats = (await ticket_service.get_workflow_stats()).to_dict()
    assert stats[TicketStatus.SENT] == 1
    assert stats["total"] == 1


async def test_urgent_refund_goes_from_submission_to_sent(ticket_service, task_runner):
    body = "This is urgent: my order arrived damaged and I need a refund for it right away!!"
    assert len(body) == 80
    ticket = await _create(
        ticket_service,
        customer_name="John Smith",
        email="john.smith@example.com",
        subject="Refund Request",
        body=body,
    )
    assert ticket.status == TicketStatus.NEW

    await task_runner.run_all()
    processed = await ticket_service.get_ticket(ticket.id)
    assert processed.status == TicketStatus.PROCESSED
    assert processed.category == TicketCategory.REFUND
    assert processed.priority == TicketPriority.HIGH

    draft = await ticket_service.generate_draft(ticket.id)
    drafted = await ticket_service.get_ticket(ticket.id)
    assert drafted.status == TicketStatus.AI_DRAFTED
    assert drafted.ai_response == draft

    sent = await ticket_service.approve_ticket(ticket.id)
    assert sent.status == TicketStatus.SENT


async def test_enhanced_ticket_degrades_without_similarity_search(ticket_service, task_runner, index, monkeypatch):
    ticket = await _create(ticket_service)
    await task_runner.run_all()

    async def offline(vector, k):
        raise VectorStoreException("search timed out")

    monkeypatch.setattr(index, "query_nearest", offline)

    response = EnhancedTicketResponse.from_view(await ticket_service.get_enhanced_ticket(ticket.id))

    assert response.similar_tickets == []
    assert response.has_similar_tickets is False


async def test_background_failure_marks_ticket(ticket_service, task_runner, llm):
    llm.classification_error = LLMException("provider down")
    ticket = await _create(ticket_service)

    await task_runner.run_all()

    failed = await ticket_service.get_ticket(ticket.id)
    assert failed.status == TicketStatus.PROCESSING_FAILED
    assert (await ticket_service.get_enhanced_ticket(ticket.id)).suggested_actions == [
        "Retry Processing", "Manual Classification",
    ]


async def test_reprocess_schedules_another_run(ticket_service, task_runner, llm):
    llm.classification_error = LLMException("provider down")
    ticket = await _create(ticket_service)
    await task_runner.run_all()

    llm.classification_error = None
    await ticket_service.reprocess_ticket(ticket.id)
    await task_runner.run_all()

    assert (await ticket_service.get_ticket(ticket.id)).status == TicketStatus.PROCESSED


async def test_classify_ticket_updates_category(ticket_service, llm):
    ticket = await _create(ticket_service)
    llm.label = "invoice"

    category = await ticket_service.classify_ticket(ticket.id)

    assert category == TicketCategory.INVOICE
    assert (await ticket_service.get_ticket(ticket.id)).category == TicketCategory.INVOICE


async def test_classify_batch_falls_back_to_general(ticket_service, llm):
    first = await _create(ticket_service)
    second = await _create(ticket_service)
    llm.classification_error = LLMException("quota exceeded")

    results = await ticket_service.classify_batch([first.id, second.id])

    assert results == [(first.id, TicketCategory.GENERAL), (second.id, TicketCategory.GENERAL)]


async def test_list_tickets_filters_by_status(ticket_service, task_runner):
    await _create(ticket_service)
    await _create(ticket_service)
    await task_runner.run_all()
    await _create(ticket_service)

    page = await ticket_service.list_tickets(status=TicketStatus.PROCESSED, page=1, limit=10)

    assert page.total == 2
    assert page.pagination["totalPages"] == 1


async def test_get_missing_ticket(ticket_service):
    with pytest.raises(ResourceNotFoundException):
        await ticket_service.get_ticket(123)


async def test_classify_batch_reports_unknown_ids_as_general(ticket_service, llm):
    llm.label = TicketCategory.INVOICE
    ticket = await _create(ticket_service)

    results = await ticket_service.classify_batch([9999, ticket.id])

    assert results == [(9999, TicketCategory.GENERAL), (ticket.id, TicketCategory.INVOICE)]
