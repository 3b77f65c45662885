"""
Core Exceptions
================

Exception hierarchy shared by every layer of the service.

Application code raises these; the API boundary translates them into
HTTP responses.
"""

from typing import Optional, Any, Dict


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API error bodies."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Malformed input: bad id, unknown status, empty draft text."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Any] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id is not None:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class InvalidOperationException(DomainException):
    """A precondition of the ticket's current state is violated."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class LLMException(ExternalServiceException):
    """Exception for LLM API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("LLM Service", message, details)


class ProviderTimeoutException(LLMException):
    """An LLM call did not finish within the configured timeout."""

    def __init__(
        self,
        operation: str,
        timeout_seconds: float,
        details: Optional[dict] = None
    ):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"{operation} timed out after {timeout_seconds:g}s",
            details or {"operation": operation, "timeout_seconds": timeout_seconds}
        )


class DraftGenerationException(LLMException):
    """Reply draft could not be generated for a ticket."""

    def __init__(self, ticket_id: Any, reason: str):
        self.ticket_id = ticket_id
        super().__init__(
            f"Draft generation failed for ticket {ticket_id}: {reason}",
            {"ticket_id": ticket_id}
        )


class VectorStoreException(ExternalServiceException):
    """Similarity index unavailable or rejected the request."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Vector Store", message, details)
