"""
Ticket Application Layer
========================

Contains:
- Interfaces: repository and similarity index abstractions
- Clients: embedding, classification and draft wrappers over the LLM
- TicketStore: owner of ticket state
- TicketProcessingPipeline, DraftGenerator, WorkflowController
- Services: ClassificationService and the TicketService facade
- DTOs: Data transfer objects for API serialization
"""

from support_desk.tickets.application.interfaces import ITicketRepository, ISimilarityIndex
from support_desk.tickets.application.clients import EmbeddingClient, ClassificationClient, DraftClient
from support_desk.tickets.application.store import TicketStore, ensure_ticket_id
from support_desk.tickets.application.pipeline import TicketProcessingPipeline
from support_desk.tickets.application.drafts import DraftGenerator
from support_desk.tickets.application.workflow import WorkflowController
from support_desk.tickets.application.services import (
    ClassificationService,
    TicketService,
    create_ticket_service,
)

__all__ = [
    # Interfaces
    "ITicketRepository",
    "ISimilarityIndex",
    # Clients
    "EmbeddingClient",
    "ClassificationClient",
    "DraftClient",
    # Services
    "TicketStore",
    "ensure_ticket_id",
    "TicketProcessingPipeline",
    "DraftGenerator",
    "WorkflowController",
    "ClassificationService",
    "TicketService",
    "create_ticket_service",
]
