"""
Ticket Application Services
===========================

Operations exposed to the API layer.

TicketService is the single entry point used by controllers and scripts;
it delegates to the pipeline, draft generator, workflow controller and
classification service.
"""

import re
from typing import List, Optional, Sequence, Tuple

from support_desk.config import TicketStatus, TicketPriority, TicketCategory
from support_desk.core import ApplicationException, ResourceNotFoundException, ValidationException
from support_desk.infrastructure.llm import ILLMClient
from support_desk.infrastructure.scheduler import ITaskRunner
from support_desk.shared.infrastructure.logging import get_logger, log_latency
from support_desk.tickets.application.clients import EmbeddingClient, ClassificationClient, DraftClient
from support_desk.tickets.application.drafts import DraftGenerator
from support_desk.tickets.application.interfaces import ITicketRepository, ISimilarityIndex
from support_desk.tickets.application.pipeline import TicketProcessingPipeline
from support_desk.tickets.application.store import TicketStore
from support_desk.tickets.application.workflow import WorkflowController
from support_desk.tickets.domain import (
    EnhancedTicketView,
    Ticket,
    TicketPage,
    TicketProcessingResult,
    TicketWorkflow,
    WorkflowOperation,
    WorkflowStats,
)

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ClassificationService:
    """
    Synchronous, on-demand classification.

    Refreshes the ticket's category and embedding together; a provider
    failure leaves the ticket unchanged.
    """

    def __init__(
        self,
        store: TicketStore,
        embedding_client: EmbeddingClient,
        classification_client: ClassificationClient
    ):
        self._store = store
        self._embedder = embedding_client
        self._classifier = classification_client

    async def classify_ticket(self, ticket_id: int) -> str:
        """
        Reclassify one ticket and refresh its embedding.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
            LLMException: If the provider fails (ticket unchanged)
        """
        ticket = await self._store.find_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        if not TicketWorkflow.is_intended(WorkflowOperation.CLASSIFY, ticket.status):
            logger.warning(
                "Reclassifying ticket outside the usual workflow",
                extra={"ticket_id": ticket_id, "status": ticket.status}
            )

        embedding = await self._embedder.embed(ticket.full_text)
        category = await self._classifier.classify(ticket.subject, ticket.body)
        await self._store.update(ticket_id, category=category, embedding=embedding)

        logger.info("Ticket reclassified", extra={"ticket_id": ticket_id, "category": category})
        return category

    async def classify_batch(self, ticket_ids: Sequence[int]) -> List[Tuple[int, str]]:
        """
        Classify several tickets one after another.

        A ticket that cannot be classified, whether the provider fails or the
        id is unknown, is reported as General and left unchanged.
        """
        results = []
        for ticket_id in ticket_ids:
            try:
                category = await self.classify_ticket(ticket_id)
            except ApplicationException as e:
                logger.warning(
                    "Batch classification failed for ticket, defaulting to General",
                    extra={"ticket_id": ticket_id, "error": str(e)}
                )
                category = TicketCategory.GENERAL
            results.append((ticket_id, category))
        return results


class TicketService:
    """Facade over every ticket operation."""

    def __init__(
        self,
        store: TicketStore,
        pipeline: TicketProcessingPipeline,
        draft_generator: DraftGenerator,
        workflow: WorkflowController,
        classification_service: ClassificationService,
        task_runner: ITaskRunner
    ):
        self._store = store
        self._pipeline = pipeline
        self._drafts = draft_generator
        self._workflow = workflow
        self._classification = classification_service
        self._tasks = task_runner

    # ========== Creation & processing ==========

    async def create_ticket(
        self,
        customer_name: str,
        email: str,
        subject: str,
        body: str,
        category: Optional[str] = None
    ) -> Ticket:
        """
        Persist a new ticket as New and schedule its processing.

        Returns without waiting for processing.

        Raises:
            ValidationException: On a missing field or malformed email
        """
        required = {"customer_name": customer_name, "email": email, "subject": subject, "body": body}
        missing = [name for name, value in required.items() if not value or not str(value).strip()]
        if missing:
            raise ValidationException(
                f"Missing required fields: {', '.join(missing)}", {"fields": missing}
            )
        if not EMAIL_PATTERN.match(email.strip()):
            raise ValidationException("Invalid email format", {"email": email})

        ticket = await self._store.create(
            Ticket(
                id=None,
                customer_name=customer_name.strip(),
                email=email.strip(),
                subject=subject.strip(),
                body=body.strip(),
                category=category or None,
                priority=TicketPriority.MEDIUM,
                status=TicketStatus.NEW,
            )
        )
        self._submit_processing(ticket)
        return ticket

    async def reprocess_ticket(self, ticket_id: int) -> Ticket:
        """Schedule another processing run for an existing ticket."""
        ticket = await self.get_ticket(ticket_id)
        if not TicketWorkflow.is_intended(WorkflowOperation.PROCESS, ticket.status):
            logger.warning(
                "Reprocessing ticket outside the usual workflow",
                extra={"ticket_id": ticket_id, "status": ticket.status}
            )
        self._submit_processing(ticket)
        return ticket

    async def process_ticket(self, ticket_id: int) -> TicketProcessingResult:
        """Run the processing pipeline in the caller's context (scripts, retries)."""
        ticket = await self.get_ticket(ticket_id)
        return await self._pipeline.process_async(ticket.id, ticket.subject, ticket.body)

    def _submit_processing(self, ticket: Ticket) -> None:
        job_id = self._tasks.submit(
            self._pipeline.run_detached,
            ticket.id,
            ticket.subject,
            ticket.body,
            name=f"process-ticket-{ticket.id}",
        )
        logger.info("Ticket processing scheduled", extra={"ticket_id": ticket.id, "job_id": job_id})

    # ========== Reads ==========

    async def get_ticket(self, ticket_id: int) -> Ticket:
        ticket = await self._store.find_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def get_enhanced_ticket(self, ticket_id: int) -> EnhancedTicketView:
        return await self._pipeline.get_enhanced_view(ticket_id)

    async def list_tickets(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> TicketPage:
        return await self._store.find_all(status=status, category=category, page=page, limit=limit)

    async def get_workflow_stats(self) -> WorkflowStats:
        return await self._workflow.get_stats()

    # ========== Classification ==========

    async def classify_ticket(self, ticket_id: int) -> str:
        return await self._classification.classify_ticket(ticket_id)

    async def classify_batch(self, ticket_ids: Sequence[int]) -> List[Tuple[int, str]]:
        return await self._classification.classify_batch(ticket_ids)

    # ========== Drafts ==========

    async def generate_draft(self, ticket_id: int) -> str:
        with log_latency(logger, "draft_generation", ticket_id=ticket_id):
            return await self._drafts.generate_draft(ticket_id)

    async def regenerate_draft(self, ticket_id: int) -> str:
        """Reclassify, then draft again with the fresh category."""
        await self._classification.classify_ticket(ticket_id)
        return await self.generate_draft(ticket_id)

    async def update_draft(self, ticket_id: int, text: str) -> None:
        await self._drafts.update_draft(ticket_id, text)

    # ========== Workflow ==========

    async def approve_ticket(self, ticket_id: int) -> Ticket:
        return await self._workflow.approve(ticket_id)

    async def escalate_ticket(self, ticket_id: int, reason: Optional[str] = None) -> Ticket:
        return await self._workflow.escalate(ticket_id, reason)

    async def set_pending_review(self, ticket_id: int) -> Ticket:
        return await self._workflow.set_pending_review(ticket_id)

    async def set_status(self, ticket_id: int, status: str) -> Ticket:
        return await self._workflow.set_status(ticket_id, status)


def create_ticket_service(
    llm_client: ILLMClient,
    repository: ITicketRepository,
    similarity_index: ISimilarityIndex,
    task_runner: ITaskRunner
) -> TicketService:
    """Wire every ticket component around one store and one provider client."""
    store = TicketStore(repository, similarity_index)
    embedding_client = EmbeddingClient(llm_client)
    classification_client = ClassificationClient(llm_client)
    return TicketService(
        store=store,
        pipeline=TicketProcessingPipeline(store, embedding_client, classification_client),
        draft_generator=DraftGenerator(store, embedding_client, DraftClient(llm_client)),
        workflow=WorkflowController(store),
        classification_service=ClassificationService(store, embedding_client, classification_client),
        task_runner=task_runner,
    )
