"""Core infrastructure components."""
from .concurrency import Outcome, TaskSet, enrich_all
from .exceptions import (
    AggregateFetchError,
    AppException,
    NotFoundError,
    ProviderUnavailableError,
    ValidationError,
)

__all__ = [
    "AggregateFetchError",
    "AppException",
    "NotFoundError",
    "Outcome",
    "ProviderUnavailableError",
    "TaskSet",
    "ValidationError",
    "enrich_all",
]
