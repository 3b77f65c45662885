"""
Configuration Module
====================

Application settings and ticket constants, loaded with pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Values can also come from a local ``.env`` file.
    """

    # ========== Application ==========
    app_name: str = Field(default="support-desk-ai", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/support_desk",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== LLM Provider ==========
    llm_provider: str = Field(
        default="openai",
        description="LLM provider used for embeddings, classification and drafts (openai, zai, mock)"
    )
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses (no API calls); overrides llm_provider"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    zai_api_key: Optional[str] = Field(default=None, description="Z.AI API key")
    llm_model: str = Field(default="gpt-4", description="Chat model for classification and drafts")
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model"
    )
    embedding_dimension: int = Field(
        default=1536,
        description="Embedding vector dimension",
        ge=8
    )
    llm_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout applied to every single provider call",
        gt=0,
        le=300
    )
    classification_max_tokens: int = Field(default=50, ge=1, le=1000)
    classification_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    draft_max_tokens: int = Field(default=500, ge=1, le=8000)
    draft_temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    # ========== Similarity Index (Milvus) ==========
    milvus_uri: str = Field(
        default="http://localhost:19530",
        description="Milvus server URI, Zilliz Cloud endpoint or Milvus Lite file path"
    )
    milvus_token: str = Field(default="", description="Milvus/Zilliz token")
    milvus_collection_name: str = Field(
        default="ticket_embeddings",
        description="Milvus collection holding one embedding per ticket"
    )
    similar_tickets_limit: int = Field(
        default=3,
        description="Number of similar tickets injected into prompts and views",
        ge=0,
        le=20
    )

    # ========== Pagination ==========
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    # ========== Grafana OTLP Metrics ==========
    grafana_host: Optional[str] = Field(
        default=None,
        description="Grafana OTLP gateway URL (e.g., https://otlp-gateway-prod-ap-south-1.grafana.net)"
    )
    grafana_api_key: Optional[str] = Field(
        default=None,
        description="Grafana API key for OTLP authentication"
    )
    grafana_instance_id: Optional[str] = Field(
        default=None,
        description="Grafana instance ID for OTLP authentication"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        allowed = {"openai", "zai", "mock"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"llm_provider must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str):
    """Ticket lifecycle statuses."""
    NEW = "New"
    PROCESSED = "Processed"
    AI_DRAFTED = "AI-Drafted"
    PENDING_REVIEW = "Pending Review"
    SENT = "Sent"
    ESCALATED = "Escalated"
    PROCESSING_FAILED = "Processing Failed"


class TicketPriority(str):
    """Ticket priority levels."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TicketCategory(str):
    """Recommended classification labels. Stored categories stay open strings."""
    REFUND = "Refund"
    PAYMENT_FAILURE = "Payment Failure"
    INVOICE = "Invoice"
    TECHNICAL_ISSUE = "Technical Issue"
    ACCOUNT = "Account"
    GENERAL = "General"


# ========== Lists for validation ==========

VALID_STATUSES = [
    TicketStatus.NEW, TicketStatus.PROCESSED, TicketStatus.AI_DRAFTED,
    TicketStatus.PENDING_REVIEW, TicketStatus.SENT, TicketStatus.ESCALATED,
    TicketStatus.PROCESSING_FAILED
]
VALID_PRIORITIES = [
    TicketPriority.HIGH, TicketPriority.MEDIUM, TicketPriority.LOW
]
TICKET_CATEGORIES = [
    TicketCategory.REFUND, TicketCategory.PAYMENT_FAILURE,
    TicketCategory.INVOICE, TicketCategory.TECHNICAL_ISSUE,
    TicketCategory.ACCOUNT, TicketCategory.GENERAL
]
