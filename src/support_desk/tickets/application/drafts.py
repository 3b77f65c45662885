"""
Draft Generation
================

Retrieval-augmented reply drafting and manual draft edits.
"""

from typing import List, Optional

from support_desk.config import settings, TicketStatus, TicketCategory
from support_desk.core import (
    ApplicationException,
    DraftGenerationException,
    LLMException,
    ProviderTimeoutException,
    ResourceNotFoundException,
    ValidationException,
)
from support_desk.shared.infrastructure.logging import get_logger
from support_desk.tickets.application.clients import EmbeddingClient, DraftClient
from support_desk.tickets.application.store import TicketStore
from support_desk.tickets.domain import (
    DraftContext,
    SimilarTicket,
    Ticket,
    TicketWorkflow,
    WorkflowOperation,
)

logger = get_logger(__name__)


class DraftGenerator:
    """
    Generates and edits the AI reply stored on a ticket.

    Generation always re-embeds the ticket and looks up similar cases first.
    Both steps are best-effort and only reduce the context available to the
    model when they fail.
    """

    def __init__(
        self,
        store: TicketStore,
        embedding_client: EmbeddingClient,
        draft_client: DraftClient,
        similar_limit: Optional[int] = None
    ):
        self._store = store
        self._embedder = embedding_client
        self._drafter = draft_client
        self._similar_limit = settings.similar_tickets_limit if similar_limit is None else similar_limit

    async def generate_draft(self, ticket_id: int) -> str:
        """
        Draft a reply and move the ticket to AI-Drafted.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
            ProviderTimeoutException: The draft call timed out (ticket unchanged)
            DraftGenerationException: The draft call failed (ticket unchanged)
        """
        ticket = await self._store.find_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        if not TicketWorkflow.is_intended(WorkflowOperation.GENERATE_DRAFT, ticket.status):
            logger.warning(
                "Generating draft outside the usual workflow",
                extra={"ticket_id": ticket_id, "status": ticket.status}
            )

        embedding = await self._refresh_embedding(ticket)
        similar = await self._find_similar(ticket_id, embedding)
        context = [
            DraftContext(subject=s.subject, body=s.body, prior_response=s.ai_response)
            for s in similar[: self._similar_limit]
        ]

        try:
            draft = await self._drafter.generate_reply(
                ticket.subject,
                ticket.body,
                ticket.category or TicketCategory.GENERAL,
                context,
            )
        except ProviderTimeoutException:
            logger.error("Draft generation timed out", extra={"ticket_id": ticket_id})
            raise
        except LLMException as e:
            logger.error("Draft generation failed", extra={"ticket_id": ticket_id, "error": str(e)})
            raise DraftGenerationException(ticket_id, e.message) from e

        await self._store.update(ticket_id, ai_response=draft, status=TicketStatus.AI_DRAFTED)
        logger.info(
            "Draft generated",
            extra={"ticket_id": ticket_id, "context_count": len(context), "draft_length": len(draft)}
        )
        return draft

    async def update_draft(self, ticket_id: int, text: str) -> None:
        """
        Overwrite the reply text without touching status.

        Raises:
            ValidationException: If text is empty
            ResourceNotFoundException: If the ticket does not exist
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationException("AI response text is required")

        updated = await self._store.update(ticket_id, ai_response=text)
        if updated is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        logger.info("Draft edited", extra={"ticket_id": ticket_id})

    async def _refresh_embedding(self, ticket: Ticket) -> Optional[List[float]]:
        try:
            embedding = await self._embedder.embed(ticket.full_text)
            await self._store.update(ticket.id, embedding=embedding)
            return embedding
        except ApplicationException as e:
            logger.warning(
                "Embedding refresh failed, drafting without similar tickets",
                extra={"ticket_id": ticket.id, "error": str(e)}
            )
            return None

    async def _find_similar(self, ticket_id: int, embedding: Optional[List[float]]) -> List[SimilarTicket]:
        if not embedding:
            return []
        try:
            return await self._store.find_similar(embedding, self._similar_limit)
        except ApplicationException as e:
            logger.warning(
                "Similar ticket lookup failed, drafting without context",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            return []
