"""
Ticket External Service Adapters
================================

Adapts the generic vector store to the ticket similarity index interface.
"""

from typing import List, Optional, Tuple

from support_desk.infrastructure.vectorstore import IVectorStore, MilvusVectorStore
from support_desk.tickets.application.interfaces import ISimilarityIndex


class SimilarityIndexAdapter(ISimilarityIndex):
    """
    Ticket embeddings stored in a vector store, one vector per ticket id.

    Implements the application layer ISimilarityIndex using the
    infrastructure layer vector store (Milvus by default).
    """

    def __init__(self, store: Optional[IVectorStore] = None):
        self._store = store or MilvusVectorStore()

    async def initialize(self) -> None:
        await self._store.initialize()

    async def indexed_count(self) -> int:
        return await self._store.count()

    async def upsert_embedding(self, ticket_id: int, vector: List[float]) -> None:
        await self._store.upsert(ticket_id, vector)

    async def get_embedding(self, ticket_id: int) -> Optional[List[float]]:
        return await self._store.get_vector(ticket_id)

    async def query_nearest(self, vector: List[float], k: int) -> List[Tuple[int, float]]:
        results = await self._store.search(vector, top_k=k)
        return [(r.id, r.score) for r in results]
