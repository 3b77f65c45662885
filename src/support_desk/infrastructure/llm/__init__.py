"""
LLM Client Infrastructure
==========================

Wrapper for LLM providers (OpenAI, Z.AI) providing clean interface for LLM operations.

Every provider call is bounded by ``settings.llm_timeout_seconds``. An expired
call raises ProviderTimeoutException, any other provider failure LLMException.
Clients never retry; callers own the retry policy.
"""

import asyncio
import hashlib
import math
import random
import time
from typing import List, Optional, Awaitable, TypeVar
from abc import ABC, abstractmethod

import openai
from openai import AsyncOpenAI
from zai import ZaiClient

from support_desk.config import settings, TicketCategory
from support_desk.core import LLMException, ConfigurationException, ProviderTimeoutException
from support_desk.shared.infrastructure.grafana import get_grafana_exporter

T = TypeVar("T")


class EmbeddingResult:
    """Result of an embedding generation."""

    def __init__(self, embedding: List[float], model: str, latency_ms: int = 0):
        self.embedding = embedding
        self.model = model
        self.dimension = len(embedding)
        self.latency_ms = latency_ms


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Only the two calls the ticket pipeline needs: embeddings and chat.
    """

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Generate embedding for text."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


async def _bounded(call: Awaitable[T], operation: str, timeout: float) -> T:
    """Await a provider call, converting expiry into ProviderTimeoutException."""
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ProviderTimeoutException(operation, timeout) from e


async def _export_metrics(
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    latency_ms: int,
    operation: str
) -> None:
    exporter = get_grafana_exporter()
    if exporter.is_enabled():
        await exporter.export_llm_metrics(
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
            operation=operation
        )


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation for GPT and text-embedding models.
    """

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._timeout = timeout_seconds or settings.llm_timeout_seconds
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            timeout=self._timeout,
            max_retries=0
        )
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for text using OpenAI embedding model.

        Raises:
            ProviderTimeoutException: If the call exceeds the timeout
            LLMException: If embedding generation fails
        """
        start_time = time.perf_counter()
        try:
            response = await _bounded(
                self._client.embeddings.create(model=self._embedding_model, input=text),
                "embedding",
                self._timeout
            )
        except LLMException:
            raise
        except openai.APITimeoutError as e:
            raise ProviderTimeoutException("embedding", self._timeout) from e
        except Exception as e:
            raise LLMException(f"Embedding generation failed: {str(e)}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        prompt_tokens = response.usage.prompt_tokens if response.usage else 0
        await _export_metrics(self._embedding_model, prompt_tokens, 0, latency_ms, "embedding")
        return EmbeddingResult(
            embedding=list(response.data[0].embedding),
            model=self._embedding_model,
            latency_ms=latency_ms
        )

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion using OpenAI GPT.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            operation: Operation type for metrics (classification, draft)

        Raises:
            ProviderTimeoutException: If the call exceeds the timeout
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await _bounded(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens
                ),
                operation,
                self._timeout
            )
        except LLMException:
            raise
        except openai.APITimeoutError as e:
            raise ProviderTimeoutException(operation, self._timeout) from e
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content or ""
        prompt_tokens = response.usage.prompt_tokens if response.usage else 0
        completion_tokens = response.usage.completion_tokens if response.usage else 0

        await _export_metrics(self._model, prompt_tokens, completion_tokens, latency_ms, operation)
        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms
        )


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous, so calls run in a worker thread.
    """

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self._api_key = api_key or settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)
        self._timeout = timeout_seconds or settings.llm_timeout_seconds
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Generate embedding for text using the Z.AI embedding model."""
        start_time = time.perf_counter()
        try:
            response = await _bounded(
                asyncio.to_thread(
                    self._client.embeddings.create,
                    model=self._embedding_model,
                    input=text
                ),
                "embedding",
                self._timeout
            )
        except LLMException:
            raise
        except Exception as e:
            raise LLMException(f"Embedding generation failed: {str(e)}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        await _export_metrics(self._embedding_model, 0, 0, latency_ms, "embedding")
        return EmbeddingResult(
            embedding=list(response.data[0].embedding),
            model=self._embedding_model,
            latency_ms=latency_ms
        )

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion using a GLM model."""
        start_time = time.perf_counter()

        try:
            response = await _bounded(
                asyncio.to_thread(
                    self._client.chat.completions.create,
                    model=self._model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens
                ),
                operation,
                self._timeout
            )
        except LLMException:
            raise
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content or ""

        # Z.AI doesn't always return token usage, so we estimate
        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", None) or len(str(messages)) // 4
        completion_tokens = getattr(usage, "completion_tokens", None) or len(content) // 4

        await _export_metrics(self._model, prompt_tokens, completion_tokens, latency_ms, operation)
        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local development and tests.

    Embeddings are deterministic unit vectors seeded from the text hash, so
    identical texts are identical neighbours. Classification guesses a label
    from keywords in the last message.
    """

    _KEYWORD_LABELS = [
        (("refund", "money back", "return it"), TicketCategory.REFUND),
        (("payment", "charge", "card"), TicketCategory.PAYMENT_FAILURE),
        (("invoice", "receipt"), TicketCategory.INVOICE),
        (("error", "login", "log in", "api", "bug", "crash", "not working"), TicketCategory.TECHNICAL_ISSUE),
        (("account", "password", "address", "subscription", "profile"), TicketCategory.ACCOUNT),
    ]

    def __init__(self, dimension: Optional[int] = None):
        self._dimension = dimension or settings.embedding_dimension

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        seed = int(hashlib.sha256(text.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        vector = [rng.uniform(-1, 1) for _ in range(self._dimension)]
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return EmbeddingResult(
            embedding=[v / norm for v in vector],
            model="mock-embedding"
        )

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        user_content = str(messages[-1].get("content", "")) if messages else ""

        if operation == "classification":
            content = self._guess_label(user_content)
        else:
            content = (
                "Dear Customer,\n\n"
                "Thank you for reaching out. We have reviewed your request and "
                "a member of our support team will follow up with the next steps shortly.\n\n"
                "Best regards,\nCustomer Support Team"
            )

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=len(user_content.split()),
            completion_tokens=len(content.split()),
            latency_ms=0
        )

    @classmethod
    def _guess_label(cls, text: str) -> str:
        lowered = text.lower()
        for keywords, label in cls._KEYWORD_LABELS:
            if any(k in lowered for k in keywords):
                return label
        return TicketCategory.GENERAL


def create_llm_client() -> ILLMClient:
    """
    Build the provider client selected by settings.

    Raises:
        ConfigurationException: If the selected provider has no API key
    """
    if settings.mock_llm or settings.llm_provider == "mock":
        return MockLLMClient()
    if settings.llm_provider == "zai":
        return ZAIILLMClient()
    return OpenAILLMClient()
