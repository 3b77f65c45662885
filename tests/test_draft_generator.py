import pytest

from support_desk.config import TicketCategory, TicketStatus
from support_desk.core import (
    DraftGenerationException,
    LLMException,
    ProviderTimeoutException,
    ResourceNotFoundException,
    ValidationException,
)
from support_desk.tickets.application import DraftGenerator

from conftest import make_ticket

SENTINEL = [0.0, 0.0, 0.0, 1.0]


@pytest.fixture
def drafts(store, embedding_client, draft_client):
    return DraftGenerator(store, embedding_client, draft_client)


async def test_generate_draft_stores_reply_and_status(drafts, store, llm):
    ticket = await store.create(make_ticket(status=TicketStatus.PROCESSED, category=TicketCategory.REFUND))

    draft = await drafts.generate_draft(ticket.id)

    assert draft == llm.draft
    stored = await store.find_by_id(ticket.id)
    assert stored.ai_response == llm.draft
    assert stored.status == TicketStatus.AI_DRAFTED


async def test_generate_draft_refreshes_embedding(drafts, store, index, llm):
    ticket = await store.create(make_ticket(status=TicketStatus.PROCESSED))
    await store.update(ticket.id, embedding=SENTINEL)

    await drafts.generate_draft(ticket.id)

    assert index.vectors[ticket.id] == llm.vector_for(f"{ticket.subject}\n\n{ticket.body}")


async def test_similar_tickets_are_given_as_context(drafts, store, llm):
    past = await store.create(make_ticket(customer_name="David Lee", status=TicketStatus.SENT))
    await store.update(
        past.id,
        embedding=llm.vector_for(f"{past.subject}\n\n{past.body}"),
        ai_response="We have issued your refund.",
    )
    ticket = await store.create(make_ticket(status=TicketStatus.PROCESSED))

    await drafts.generate_draft(ticket.id)

    operation, messages = llm.chat_calls[-1]
    assert operation == "draft"
    prompt = "\n".join(m["content"] for m in messages)
    assert "We have issued your refund." in prompt


async def test_draft_failure_leaves_ticket_unchanged(drafts, store, llm):
    ticket = await store.create(make_ticket(status=TicketStatus.PROCESSED))
    llm.draft_error = LLMException("model overloaded")

    with pytest.raises(DraftGenerationException):
        await drafts.generate_draft(ticket.id)

    stored = await store.find_by_id(ticket.id)
    assert stored.status == TicketStatus.PROCESSED
    assert stored.ai_response is None


async def test_draft_timeout_propagates(drafts, store, llm):
    ticket = await store.create(make_ticket(status=TicketStatus.PROCESSED))
    llm.draft_error = ProviderTimeoutException("draft", 30)

    with pytest.raises(ProviderTimeoutException):
        await drafts.generate_draft(ticket.id)

    assert (await store.find_by_id(ticket.id)).status == TicketStatus.PROCESSED


async def test_draft_survives_embedding_and_index_outage(drafts, store, index, llm):
    ticket = await store.create(make_ticket(status=TicketStatus.PROCESSED))
    llm.embedding_error = LLMException("embedding down")
    index.unavailable = True

    draft = await drafts.generate_draft(ticket.id)

    assert draft == llm.draft


async def test_generate_draft_missing_ticket(drafts):
    with pytest.raises(ResourceNotFoundException):
        await drafts.generate_draft(9999)


async def test_update_draft_keeps_status(drafts, store):
    ticket = await store.create(make_ticket(status=TicketStatus.AI_DRAFTED, ai_response="Old"))

    await drafts.update_draft(ticket.id, "Edited reply")

    stored = await store.find_by_id(ticket.id)
    assert stored.ai_response == "Edited reply"
    assert stored.status == TicketStatus.AI_DRAFTED


@pytest.mark.parametrize("text", ["", "   "])
async def test_update_draft_requires_text(drafts, store, text):
    ticket = await store.create(make_ticket())
    with pytest.raises(ValidationException):
        await drafts.update_draft(ticket.id, text)


async def test_update_draft_missing_ticket(drafts):
    with pytest.raises(ResourceNotFoundException):
        await drafts.update_draft(404, "text")
