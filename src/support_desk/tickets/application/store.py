"""
Ticket Store
============

Single owner of ticket state. Rows go to the repository, embeddings to the
similarity index. Other services read snapshots and write back through
``update``.
"""

from typing import Any, Dict, List, Optional

from support_desk.config import settings
from support_desk.core import ValidationException, VectorStoreException
from support_desk.shared.infrastructure.logging import get_logger
from support_desk.tickets.application.interfaces import ITicketRepository, ISimilarityIndex
from support_desk.tickets.domain import Ticket, SimilarTicket, TicketPage

logger = get_logger(__name__)

MUTABLE_FIELDS = frozenset({
    "category", "priority", "status", "ai_response", "escalation_reason", "embedding",
})


def ensure_ticket_id(ticket_id: Any) -> int:
    """
    Validate a ticket id.

    Raises:
        ValidationException: Unless ticket_id is a positive integer
    """
    if isinstance(ticket_id, bool) or not isinstance(ticket_id, int) or ticket_id < 1:
        raise ValidationException("Invalid ticket ID", {"ticket_id": repr(ticket_id)})
    return ticket_id


class TicketStore:
    """
    Facade over ticket rows and the similarity index.

    Embedding writes are best-effort: an unavailable index is logged and the
    row update still stands. Similarity queries raise VectorStoreException
    and callers decide how to degrade.
    """

    def __init__(self, repository: ITicketRepository, similarity_index: ISimilarityIndex):
        self._repository = repository
        self._index = similarity_index

    async def create(self, ticket: Ticket) -> Ticket:
        created = await self._repository.create(ticket)
        if ticket.embedding:
            await self._upsert_embedding(created.id, ticket.embedding)
            created.embedding = ticket.embedding
        logger.info("Ticket created", extra={"ticket_id": created.id, "status": created.status})
        return created

    async def find_by_id(self, ticket_id: int, with_embedding: bool = False) -> Optional[Ticket]:
        """
        Load one ticket.

        Args:
            with_embedding: Also fetch the stored embedding. An unavailable
                index leaves ``embedding`` as None.
        """
        ensure_ticket_id(ticket_id)
        ticket = await self._repository.get_by_id(ticket_id)
        if ticket is None or not with_embedding:
            return ticket

        try:
            ticket.embedding = await self._index.get_embedding(ticket_id)
        except VectorStoreException as e:
            logger.warning(
                "Embedding unavailable, returning ticket without it",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
        return ticket

    async def find_all(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> TicketPage:
        """Filtered, newest-first listing."""
        limit = settings.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationException("page must be >= 1", {"page": page})
        if limit < 1 or limit > settings.max_page_size:
            raise ValidationException(
                f"limit must be between 1 and {settings.max_page_size}", {"limit": limit}
            )

        filters = {"status": status or None, "category": category or None}
        tickets = await self._repository.list(filters, limit=limit, offset=(page - 1) * limit)
        total = await self._repository.count(filters)
        return TicketPage(tickets=tickets, page=page, limit=limit, total=total)

    async def count(self, status: Optional[str] = None) -> int:
        return await self._repository.count({"status": status})

    async def count_by_status(self) -> Dict[str, int]:
        return await self._repository.count_by_status()

    async def update(self, ticket_id: int, **fields: Any) -> Optional[Ticket]:
        """
        Patch a ticket. Returns None when it does not exist.

        Row fields are written first; an ``embedding`` field is then upserted
        into the similarity index.

        Raises:
            ValidationException: When patching an immutable or unknown field
        """
        ensure_ticket_id(ticket_id)
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValidationException(
                f"Cannot update ticket fields: {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)}
            )

        embedding = fields.pop("embedding", None)
        if fields:
            ticket = await self._repository.update(ticket_id, fields)
        else:
            ticket = await self._repository.get_by_id(ticket_id)
        if ticket is None:
            return None

        if embedding is not None:
            await self._upsert_embedding(ticket_id, embedding)
            ticket.embedding = embedding
        return ticket

    async def find_similar(self, embedding: List[float], k: Optional[int] = None) -> List[SimilarTicket]:
        """
        Nearest tickets by cosine similarity, most similar first.

        The ticket that owns ``embedding`` is not excluded and usually comes
        back first with similarity ~1.0.

        Raises:
            VectorStoreException: If the index cannot run the query
        """
        k = settings.similar_tickets_limit if k is None else k
        if k <= 0:
            return []

        neighbours = await self._index.query_nearest(embedding, k)
        if not neighbours:
            return []

        rows = {t.id: t for t in await self._repository.get_many([tid for tid, _ in neighbours])}
        # Index entries whose row is gone are skipped
        return [
            SimilarTicket.from_ticket(rows[tid], similarity)
            for tid, similarity in neighbours
            if tid in rows
        ]

    async def _upsert_embedding(self, ticket_id: int, embedding: List[float]) -> None:
        try:
            await self._index.upsert_embedding(ticket_id, embedding)
        except VectorStoreException as e:
            logger.warning(
                "Failed to store ticket embedding",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
