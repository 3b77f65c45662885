"""
Core Module
============

Framework-agnostic building blocks shared across the application.
"""

from support_desk.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    InvalidOperationException,
    ConfigurationException,
    ExternalServiceException,
    LLMException,
    ProviderTimeoutException,
    DraftGenerationException,
    VectorStoreException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "InvalidOperationException",
    "ConfigurationException",
    "ExternalServiceException",
    "LLMException",
    "ProviderTimeoutException",
    "DraftGenerationException",
    "VectorStoreException",
]
