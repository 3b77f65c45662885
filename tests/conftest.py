import math
from typing import Callable, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from support_desk.config import TicketCategory, TicketPriority, TicketStatus
from support_desk.core import VectorStoreException
from support_desk.infrastructure.database import create_tables
from support_desk.infrastructure.llm import ChatCompletionResult, EmbeddingResult, ILLMClient
from support_desk.infrastructure.scheduler import ITaskRunner
from support_desk.tickets.application import (
    ClassificationClient,
    DraftClient,
    EmbeddingClient,
    ISimilarityIndex,
    TicketStore,
    create_ticket_service,
)
from support_desk.tickets.domain import Ticket
from support_desk.tickets.infrastructure import SQLAlchemyTicketRepository


class FakeLLMClient(ILLMClient):
    """Deterministic provider: embeddings from character counts, fixed labels and drafts."""

    def __init__(
        self,
        label: str = TicketCategory.REFUND,
        draft: str = "Thanks for reaching out, we will process your refund.",
        dimension: int = 4
    ):
        self.label = label
        self.draft = draft
        self.dimension = dimension
        self.embedding_error: Optional[Exception] = None
        self.classification_error: Optional[Exception] = None
        self.draft_error: Optional[Exception] = None
        self.embedded_texts: List[str] = []
        self.chat_calls: List[Tuple[str, List[dict]]] = []

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        if self.embedding_error:
            raise self.embedding_error
        self.embedded_texts.append(text)
        return EmbeddingResult(embedding=self.vector_for(text), model="fake-embedding")

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        self.chat_calls.append((operation, messages))
        if operation == "classification":
            if self.classification_error:
                raise self.classification_error
            content = self.label
        else:
            if self.draft_error:
                raise self.draft_error
            content = self.draft
        return ChatCompletionResult(
            content=content, model="fake-chat", prompt_tokens=1, completion_tokens=1, latency_ms=0
        )

    def vector_for(self, text: str) -> List[float]:
        counts = [float(text.lower().count(ch)) + 1.0 for ch in "aeiou"[: self.dimension]]
        norm = math.sqrt(sum(v * v for v in counts))
        return [v / norm for v in counts]


class FakeSimilarityIndex(ISimilarityIndex):
    """In-memory cosine index."""

    def __init__(self):
        self.vectors: Dict[int, List[float]] = {}
        self.unavailable = False

    def _check(self) -> None:
        if self.unavailable:
            raise VectorStoreException("index offline")

    async def upsert_embedding(self, ticket_id: int, vector: List[float]) -> None:
        self._check()
        self.vectors[ticket_id] = list(vector)

    async def get_embedding(self, ticket_id: int) -> Optional[List[float]]:
        self._check()
        return self.vectors.get(ticket_id)

    async def query_nearest(self, vector: List[float], k: int) -> List[Tuple[int, float]]:
        self._check()
        scored = [(tid, _cosine(vector, v)) for tid, v in self.vectors.items()]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:k]


def _cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class RecordingTaskRunner(ITaskRunner):
    """Keeps submitted jobs so tests decide when (and whether) they run."""

    def __init__(self):
        self.jobs: List[Tuple[Callable, tuple, Optional[str]]] = []

    def submit(self, func, *args, name=None) -> str:
        self.jobs.append((func, args, name))
        return f"job-{len(self.jobs)}"

    async def run_all(self) -> None:
        jobs, self.jobs = self.jobs, []
        for func, args, _ in jobs:
            await func(*args)


def make_ticket(**overrides) -> Ticket:
    values = dict(
        id=None,
        customer_name="John Smith",
        email="john.smith@example.com",
        subject="Refund Request for Order #12345",
        body="The product arrived damaged and I would like my money back.",
        category=None,
        priority=TicketPriority.MEDIUM,
        status=TicketStatus.NEW,
    )
    values.update(overrides)
    return Ticket(**values)


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def repository(session_maker):
    return SQLAlchemyTicketRepository(session_maker)


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def index():
    return FakeSimilarityIndex()


@pytest.fixture
def store(repository, index):
    return TicketStore(repository, index)


@pytest.fixture
def embedding_client(llm):
    return EmbeddingClient(llm)


@pytest.fixture
def classification_client(llm):
    return ClassificationClient(llm)


@pytest.fixture
def draft_client(llm):
    return DraftClient(llm)


@pytest.fixture
def task_runner():
    return RecordingTaskRunner()


@pytest.fixture
def ticket_service(llm, repository, index, task_runner):
    return create_ticket_service(
        llm_client=llm, repository=repository, similarity_index=index, task_runner=task_runner
    )
