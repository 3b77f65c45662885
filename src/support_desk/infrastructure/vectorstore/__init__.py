"""
Vector Store Infrastructure
============================

Milvus vector store holding one embedding per record id.

The collection uses the COSINE metric, for which Milvus reports cosine
similarity in the hit's ``distance`` field (1.0 means identical direction).
"""

import asyncio
from typing import List, Optional
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pymilvus import MilvusClient

from support_desk.config import settings
from support_desk.core import VectorStoreException
from support_desk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SearchResult:
    """Result from vector search."""
    id: int
    score: float


class IVectorStore(ABC):
    """
    Interface for vector store operations.

    Every failure surfaces as VectorStoreException.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the vector store."""

    @abstractmethod
    async def upsert(self, record_id: int, vector: List[float]) -> None:
        """Insert or replace the vector stored for a record."""

    @abstractmethod
    async def get_vector(self, record_id: int) -> Optional[List[float]]:
        """Return the stored vector, or None when the record has none."""

    @abstractmethod
    async def search(self, query_embedding: List[float], top_k: int = 3) -> List[SearchResult]:
        """Return up to top_k nearest records, most similar first."""

    @abstractmethod
    async def count(self) -> int:
        """Number of vectors in the collection."""


class MilvusVectorStore(IVectorStore):
    """
    Milvus implementation of the vector store.

    Works against a Milvus server, Zilliz Cloud (uri + token) or a local
    Milvus Lite file (uri ending in ``.db``). Client calls are blocking, so
    they run in a worker thread.
    """

    def __init__(
        self,
        collection_name: Optional[str] = None,
        uri: Optional[str] = None,
        token: Optional[str] = None,
        dimension: Optional[int] = None
    ):
        self._collection_name = collection_name or settings.milvus_collection_name
        self._uri = uri or settings.milvus_uri
        self._token = token if token is not None else settings.milvus_token
        self._dimension = dimension or settings.embedding_dimension
        self._client: Optional[MilvusClient] = None
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Connect and create the collection on first use."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return
            try:
                self._client = await asyncio.to_thread(
                    MilvusClient, uri=self._uri, token=self._token
                )
                exists = await asyncio.to_thread(
                    self._client.has_collection, self._collection_name
                )
                if not exists:
                    await asyncio.to_thread(
                        self._client.create_collection,
                        collection_name=self._collection_name,
                        dimension=self._dimension,
                        primary_field_name="id",
                        id_type="int",
                        vector_field_name="vector",
                        metric_type="COSINE",
                        auto_id=False,
                    )
                    logger.info(
                        "Created Milvus collection",
                        extra={"collection": self._collection_name, "dimension": self._dimension}
                    )
                self._initialized = True
            except Exception as e:
                raise VectorStoreException(f"Failed to initialize Milvus: {str(e)}") from e

    async def upsert(self, record_id: int, vector: List[float]) -> None:
        """
        Insert or replace the vector of a record.

        Raises:
            VectorStoreException: On dimension mismatch or Milvus failure
        """
        self._check_dimension(vector)
        client = await self._ready_client()
        try:
            await asyncio.to_thread(
                client.upsert,
                collection_name=self._collection_name,
                data=[{"id": int(record_id), "vector": [float(v) for v in vector]}],
            )
        except Exception as e:
            raise VectorStoreException(f"Upsert failed for id {record_id}: {str(e)}") from e

    async def get_vector(self, record_id: int) -> Optional[List[float]]:
        client = await self._ready_client()
        try:
            rows = await asyncio.to_thread(
                client.get,
                collection_name=self._collection_name,
                ids=[int(record_id)],
                output_fields=["vector"],
            )
        except Exception as e:
            raise VectorStoreException(f"Fetch failed for id {record_id}: {str(e)}") from e

        if not rows:
            return None
        return [float(v) for v in rows[0]["vector"]]

    async def search(
        self,
        query_embedding: List[float],
        top_k: int = 3
    ) -> List[SearchResult]:
        """
        Search for the nearest records by cosine similarity.

        Raises:
            VectorStoreException: If search fails
        """
        if top_k <= 0:
            return []
        self._check_dimension(query_embedding)
        client = await self._ready_client()

        try:
            results = await asyncio.to_thread(
                client.search,
                collection_name=self._collection_name,
                data=[[float(v) for v in query_embedding]],
                limit=top_k,
                search_params={"metric_type": "COSINE"},
                output_fields=["id"],
            )
        except Exception as e:
            raise VectorStoreException(f"Search failed: {str(e)}") from e

        hits = results[0] if results else []
        formatted = [SearchResult(id=int(hit["id"]), score=float(hit["distance"])) for hit in hits]
        # Stable: ties keep the order Milvus returned them in
        formatted.sort(key=lambda r: r.score, reverse=True)
        return formatted

    async def count(self) -> int:
        client = await self._ready_client()
        try:
            stats = await asyncio.to_thread(
                client.get_collection_stats, collection_name=self._collection_name
            )
        except Exception as e:
            raise VectorStoreException(f"Count failed: {str(e)}") from e
        return int(stats.get("row_count", 0))

    async def _ready_client(self) -> MilvusClient:
        if not self._initialized:
            await self.initialize()
        if self._client is None:
            raise VectorStoreException("Vector store not initialized")
        return self._client

    def _check_dimension(self, vector: List[float]) -> None:
        if len(vector) != self._dimension:
            raise VectorStoreException(
                f"Embedding dimension {len(vector)} does not match collection dimension {self._dimension}",
                {"expected": self._dimension, "actual": len(vector)}
            )
