import pytest

from support_desk.config import TicketCategory
from support_desk.tickets.application import ClassificationClient, DraftClient, EmbeddingClient
from support_desk.core import LLMException
from support_desk.infrastructure.llm import EmbeddingResult

from conftest import FakeLLMClient


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Refund", TicketCategory.REFUND),
        ("  payment failure.\n", TicketCategory.PAYMENT_FAILURE),
        ('"Technical Issue"', TicketCategory.TECHNICAL_ISSUE),
        ("", TicketCategory.GENERAL),
        ("   ", TicketCategory.GENERAL),
        ("Shipping", "Shipping"),
    ],
)
def test_normalize_label(raw, expected):
    assert ClassificationClient.normalize_label(raw) == expected


async def test_classify_sends_subject_and_body():
    llm = FakeLLMClient(label="invoice")
    label = await ClassificationClient(llm).classify("Invoice Request", "Send me the Q1 invoice")

    assert label == TicketCategory.INVOICE
    operation, messages = llm.chat_calls[0]
    assert operation == "classification"
    assert "Email Subject: Invoice Request" in messages[-1]["content"]
    assert "Email Body: Send me the Q1 invoice" in messages[-1]["content"]


async def test_draft_client_rejects_empty_completion():
    llm = FakeLLMClient(draft="   ")
    with pytest.raises(LLMException):
        await DraftClient(llm).generate_reply("Subject", "Body", TicketCategory.GENERAL, [])


async def test_embedding_client_rejects_empty_vector():
    llm = FakeLLMClient()

    async def empty(text):
        return EmbeddingResult(embedding=[], model="fake")

    llm.generate_embedding = empty
    with pytest.raises(LLMException):
        await EmbeddingClient(llm).embed("text")
