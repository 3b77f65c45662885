"""
Ticket Application Interfaces
=============================

Abstractions the application services depend on. Infrastructure provides
the implementations; tests substitute fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from support_desk.tickets.domain import Ticket


# ========== Repository Interfaces ==========

class ITicketRepository(ABC):
    """Interface for ticket row storage (everything except embeddings)."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket and return it with its assigned id."""

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        """Get ticket by id."""

    @abstractmethod
    async def get_many(self, ticket_ids: Sequence[int]) -> List[Ticket]:
        """Get the tickets that exist among ticket_ids (any order)."""

    @abstractmethod
    async def list(self, filters: Dict[str, Any], limit: int, offset: int) -> List[Ticket]:
        """List tickets matching exact-value filters, newest first."""

    @abstractmethod
    async def count(self, filters: Dict[str, Any]) -> int:
        """Count tickets matching exact-value filters."""

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        """Ticket counts grouped by status."""

    @abstractmethod
    async def update(self, ticket_id: int, fields: Dict[str, Any]) -> Optional[Ticket]:
        """Patch the given fields. Returns None when the ticket does not exist."""


class ISimilarityIndex(ABC):
    """
    Interface for the embedding index.

    Every method raises VectorStoreException when the index is unavailable.
    """

    @abstractmethod
    async def upsert_embedding(self, ticket_id: int, vector: List[float]) -> None:
        """Store or replace the embedding of a ticket."""

    @abstractmethod
    async def get_embedding(self, ticket_id: int) -> Optional[List[float]]:
        """Stored embedding of a ticket, None if it has none."""

    @abstractmethod
    async def query_nearest(self, vector: List[float], k: int) -> List[Tuple[int, float]]:
        """(ticket_id, cosine similarity) pairs, most similar first."""

