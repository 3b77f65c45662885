"""
Ticket Processing Pipeline
==========================

Turns a freshly created ticket into a classified, prioritized, embedded
record, and assembles the enhanced view used by agents.

Flow for one run:
    embed -> classify -> score priority -> similar tickets (best-effort)
          -> single update {category, embedding, priority, status=Processed}

Runs are normally detached from the request that created the ticket. Two
runs for the same ticket are not serialized; the last write wins.
"""

import time
from typing import List, Optional

from support_desk.config import settings, TicketStatus, TicketPriority
from support_desk.core import ApplicationException, ResourceNotFoundException
from support_desk.shared.infrastructure.grafana import get_grafana_exporter
from support_desk.shared.infrastructure.logging import get_logger
from support_desk.tickets.application.clients import EmbeddingClient, ClassificationClient
from support_desk.tickets.application.store import TicketStore
from support_desk.tickets.domain import (
    EnhancedTicketView,
    PriorityScorer,
    SimilarTicket,
    TicketProcessingResult,
    TicketWorkflow,
    compose_ticket_text,
)

logger = get_logger(__name__)


class TicketProcessingPipeline:
    """
    Orchestrates automated ticket processing.

    Embedding and classification failures are terminal for a run and mark
    the ticket Processing Failed. The similarity lookup is best-effort.
    """

    def __init__(
        self,
        store: TicketStore,
        embedding_client: EmbeddingClient,
        classification_client: ClassificationClient,
        priority_scorer: Optional[PriorityScorer] = None,
        similar_limit: Optional[int] = None
    ):
        self._store = store
        self._embedder = embedding_client
        self._classifier = classification_client
        self._scorer = priority_scorer or PriorityScorer()
        self._similar_limit = settings.similar_tickets_limit if similar_limit is None else similar_limit

    async def process_async(self, ticket_id: int, subject: str, body: str) -> TicketProcessingResult:
        """
        Process one ticket. Safe to call again for the same ticket.

        Raises:
            LLMException: Embedding or classification failed (ticket marked failed)
            ResourceNotFoundException: The ticket vanished before the update
        """
        logger.info("Processing ticket", extra={"ticket_id": ticket_id})

        try:
            embedding = await self._embedder.embed(compose_ticket_text(subject, body))
            category = await self._classifier.classify(subject, body)
            priority = self._scorer.score(subject, body, category)
            similar = await self._similar_or_empty(ticket_id, embedding)

            updated = await self._store.update(
                ticket_id,
                category=category,
                embedding=embedding,
                priority=priority,
                status=TicketStatus.PROCESSED,
            )
            if updated is None:
                raise ResourceNotFoundException("Ticket", ticket_id)
        except ResourceNotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Ticket processing failed",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            await self._mark_failed(ticket_id)
            raise

        logger.info(
            "Ticket processed",
            extra={
                "ticket_id": ticket_id,
                "category": category,
                "priority": priority,
                "similar_count": len(similar),
            }
        )
        return TicketProcessingResult(
            ticket_id=ticket_id,
            category=category,
            priority=priority,
            status=TicketStatus.PROCESSED,
            similar_tickets=similar,
        )

    async def run_detached(self, ticket_id: int, subject: str, body: str) -> None:
        """
        Error boundary for background runs: logs failures, never raises.
        """
        start = time.perf_counter()
        outcome = "processed"
        try:
            await self.process_async(ticket_id, subject, body)
        except Exception:
            outcome = "failed"
            logger.exception("Background ticket processing failed", extra={"ticket_id": ticket_id})

        latency_ms = int((time.perf_counter() - start) * 1000)
        exporter = get_grafana_exporter()
        if exporter.is_enabled():
            await exporter.export_ticket_processing(outcome, latency_ms)

    async def get_enhanced_view(self, ticket_id: int) -> EnhancedTicketView:
        """
        Ticket, similar tickets and suggested actions. Read-only.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
        """
        ticket = await self._store.find_by_id(ticket_id, with_embedding=True)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        similar: List[SimilarTicket] = []
        if ticket.embedding:
            similar = await self._similar_or_empty(ticket_id, ticket.embedding)

        return EnhancedTicketView(
            ticket=ticket,
            similar_tickets=similar,
            suggested_actions=TicketWorkflow.suggested_actions(
                ticket.status, ticket.priority or TicketPriority.MEDIUM
            ),
            can_generate_draft=TicketWorkflow.can_generate_draft(ticket.status),
        )

    async def _similar_or_empty(self, ticket_id: int, embedding: List[float]) -> List[SimilarTicket]:
        try:
            return await self._store.find_similar(embedding, self._similar_limit)
        except ApplicationException as e:
            logger.warning(
                "Similar ticket lookup unavailable",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            return []

    async def _mark_failed(self, ticket_id: int) -> None:
        try:
            await self._store.update(ticket_id, status=TicketStatus.PROCESSING_FAILED)
        except Exception as e:
            logger.error(
                "Could not mark ticket as Processing Failed",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
