"""Error Hierarchy — typed, categorized exceptions for all Courtside failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Remote commerce messages are carried verbatim in `message` (never rewritten)
    - Errors never carry cache or intent state; they only describe the failure
    - to_response() produces a UI-facing envelope

Design Decisions:
    - Single hierarchy with CourtsideError base: UI layer catches one type
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    STATE = "state"
    EXTERNAL_API = "external_api"
    COMMERCE = "commerce"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    function_name: str | None = None
    cache_key: str | None = None
    status_code: int | None = None
    debug_info: dict[str, Any] | None = None


class CourtsideError(Exception):
    """Base exception for all Courtside errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_response(self) -> dict:
        """Convert to the error envelope handed to the UI layer."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "function_name": self.context.function_name,
                    "cache_key": self.context.cache_key,
                    "status_code": self.context.status_code,
                },
            }
        }


# ─── Feed Errors ────────────────────────────────────────────────

class FetchFailedError(CourtsideError):
    """Feed request failed at the transport or HTTP level."""
    def __init__(self, cause: Exception, context: ErrorContext | None = None):
        super().__init__(
            f"Feed fetch failed: {cause}",
            "FETCH_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context,
        )
        self.cause = cause


class MalformedResponseError(CourtsideError):
    """Feed response is missing required fields or violates the page schema."""
    def __init__(
        self, message: str, field: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "MALFORMED_RESPONSE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.field = field


class ResourceNotFoundError(CourtsideError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidStateError(CourtsideError):
    """Operation invoked on an empty or already-terminal page chain."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.STATE,
            ErrorSeverity.WARNING, context,
        )


# ─── Commerce Errors ────────────────────────────────────────────

class CheckoutFailedError(CourtsideError):
    """create-checkout failed; message is the remote reason, verbatim."""
    def __init__(
        self,
        message: str,
        idempotency_key: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "CHECKOUT_FAILED", ErrorCategory.COMMERCE,
            ErrorSeverity.ERROR, context,
        )
        self.idempotency_key = idempotency_key


class SubscriptionFailedError(CourtsideError):
    """create-subscription failed; message is the remote reason, verbatim."""
    def __init__(
        self,
        message: str,
        idempotency_key: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "SUBSCRIPTION_FAILED", ErrorCategory.COMMERCE,
            ErrorSeverity.ERROR, context,
        )
        self.idempotency_key = idempotency_key


# ─── Infrastructure Errors ──────────────────────────────────────

class RemoteFunctionError(CourtsideError):
    """Remote call failed. Translated by services before reaching callers.

    `remote_message` is the server-provided reason when one was present
    in the error body, else None.
    """
    def __init__(
        self,
        message: str,
        error_type: str,
        remote_message: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "REMOTE_FUNCTION_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context,
        )
        self.error_type = error_type
        self.remote_message = remote_message
