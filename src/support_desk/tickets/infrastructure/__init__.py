"""
Ticket Infrastructure Layer
===========================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
- External: similarity index adapter over the vector store
"""

from support_desk.tickets.infrastructure.models import TicketModel
from support_desk.tickets.infrastructure.repositories import SQLAlchemyTicketRepository
from support_desk.tickets.infrastructure.external import SimilarityIndexAdapter

__all__ = [
    "TicketModel",
    "SQLAlchemyTicketRepository",
    "SimilarityIndexAdapter",
]
