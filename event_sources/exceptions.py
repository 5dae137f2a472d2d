"""
Event Source Exceptions - Custom error hierarchy.

These exceptions are internal. Adapters and the collection
orchestrator convert them into CollectionResult metadata and
never raise them to callers.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class EventSourceError(Exception):
    """Base exception for all event source errors."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.source_name = source_name
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class RateLimitError(EventSourceError):
    """Upstream answered 429 or the local budget is exhausted."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        retry_after_seconds: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "retry_after_seconds": self.retry_after_seconds,
        })
        return data


class FetchError(EventSourceError):
    """Failed to fetch a payload (network error, non-200, challenge page)."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.status_code = status_code
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "url": self.url,
        })
        return data


class ParseError(EventSourceError):
    """Payload could not be parsed into records."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        raw_data: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.raw_data = raw_data[:500] if raw_data else None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_data_preview": self.raw_data[:100] if self.raw_data else None,
        })
        return data


class SourceUnavailableError(EventSourceError):
    """Source is disabled, unconfigured, or permanently gone."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        is_permanent: bool = False,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.is_permanent = is_permanent

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "is_permanent": self.is_permanent,
        })
        return data


class NormalizationError(EventSourceError):
    """A raw value could not be mapped onto a canonical field."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        raw_value: Optional[Any] = None,
        target_field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.raw_value = raw_value
        self.target_field = target_field

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_value": str(self.raw_value)[:100] if self.raw_value is not None else None,
            "target_field": self.target_field,
        })
        return data
