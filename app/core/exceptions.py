"""
Custom exception hierarchy for centralized error handling.
All exceptions map to appropriate HTTP status codes.
"""
from typing import Any, Dict, List, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppException):
    """Invalid input data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class ProviderUnavailableError(AppException):
    """External provider failed: network error, timeout or non-2xx answer."""

    def __init__(self, provider: str, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Provider temporarily unavailable: {provider}",
            status_code=503,
            error_code="PROVIDER_UNAVAILABLE",
            details={"provider": provider, "reason": reason},
        )
        self.provider = provider
        self.reason = reason


class AggregateFetchError(AppException):
    """Every source of a fan-out request failed."""

    def __init__(self, section: str, failed_sources: List[str]) -> None:
        super().__init__(
            message=f"All sources failed for: {section}",
            status_code=503,
            error_code="ALL_SOURCES_FAILED",
            details={"section": section, "failed_sources": failed_sources},
        )
        self.section = section
        self.failed_sources = failed_sources
