"""Error Hierarchy: typed, categorized exceptions for the prop engine.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Cache errors are raised and caught inside the once cache; they never reach callers
    - Exceptions raised by prop callbacks are NOT wrapped; they propagate unchanged
    - to_response() produces the REST error envelope, no internal details

Design Decisions:
    - Single hierarchy with PagePropsError base: the FastAPI handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CACHE = "cache"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: str | None = None
    prop_path: str | None = None
    session_id: str | None = None
    debug_info: dict[str, Any] | None = None


class PagePropsError(Exception):
    """Base exception for all prop engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "component": self.context.component,
                    "prop_path": self.context.prop_path,
                },
            }
        }


# ─── Construction Errors (400-level) ────────────────────────────

class InvalidPropError(PagePropsError):
    """A prop constructor was given an unusable argument."""
    def __init__(self, message: str, argument: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_PROP", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.argument = argument


# ─── Cache Errors (recovered inside the once cache) ─────────────

class CacheUnavailableError(PagePropsError):
    """Request carries no session; once values cannot be persisted."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No session available for once-prop caching",
            "CACHE_UNAVAILABLE", ErrorCategory.CACHE,
            ErrorSeverity.INFO, context, 500,
        )


class CacheSerializationError(PagePropsError):
    """Resolved once value cannot be serialized for the session store."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Once value is not serializable: {reason}",
            "CACHE_SERIALIZATION_FAILED", ErrorCategory.CACHE,
            ErrorSeverity.WARNING, context, 500,
        )
        self.reason = reason
