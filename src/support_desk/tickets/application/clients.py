"""
Ticket Language-Model Clients
=============================

Thin task-specific wrappers over an ILLMClient: embedding, single-label
classification and reply drafting. Errors from the provider propagate
unchanged (LLMException / ProviderTimeoutException); nothing is retried.
"""

from typing import List, Sequence

from support_desk.config import settings, TicketCategory, TICKET_CATEGORIES
from support_desk.core import LLMException
from support_desk.infrastructure.llm import ILLMClient
from support_desk.shared.infrastructure.logging import get_logger
from support_desk.tickets.domain import (
    ClassificationPromptBuilder,
    DraftPromptBuilder,
    DraftContext,
)

logger = get_logger(__name__)

_CANONICAL_LABELS = {label.lower(): label for label in TICKET_CATEGORIES}


class EmbeddingClient:
    """Produces the fixed-length vector for a piece of ticket text."""

    def __init__(self, llm_client: ILLMClient):
        self._llm = llm_client

    async def embed(self, text: str) -> List[float]:
        result = await self._llm.generate_embedding(text)
        if not result.embedding:
            raise LLMException("Embedding provider returned an empty vector")
        return [float(v) for v in result.embedding]


class ClassificationClient:
    """
    Asks the model for exactly one category label.

    The label is normalised (whitespace, quotes, trailing period, casing of
    known categories). Labels outside the known set are kept as returned,
    and an empty answer falls back to General.
    """

    def __init__(self, llm_client: ILLMClient):
        self._llm = llm_client

    async def classify(self, subject: str, body: str) -> str:
        response = await self._llm.chat_completion(
            ClassificationPromptBuilder.build_messages(subject, body),
            temperature=settings.classification_temperature,
            max_tokens=settings.classification_max_tokens,
            operation="classification",
        )
        label = self.normalize_label(response.content)
        logger.debug("Ticket classified", extra={"category": label, "latency_ms": response.latency_ms})
        return label

    @staticmethod
    def normalize_label(raw: str) -> str:
        label = (raw or "").strip().strip("\"'`").strip().rstrip(".").strip()
        if not label:
            return TicketCategory.GENERAL
        return _CANONICAL_LABELS.get(label.lower(), label)


class DraftClient:
    """Generates a reply conditioned on the ticket and similar past cases."""

    def __init__(self, llm_client: ILLMClient):
        self._llm = llm_client

    async def generate_reply(
        self,
        subject: str,
        body: str,
        category: str,
        context: Sequence[DraftContext]
    ) -> str:
        """
        Draft a reply.

        Raises:
            LLMException: On provider failure or an empty completion
            ProviderTimeoutException: If the provider call timed out
        """
        response = await self._llm.chat_completion(
            DraftPromptBuilder.build_messages(subject, body, category, context),
            temperature=settings.draft_temperature,
            max_tokens=settings.draft_max_tokens,
            operation="draft",
        )
        draft = (response.content or "").strip()
        if not draft:
            raise LLMException("Provider returned an empty draft")
        return draft
