"""Error Hierarchy — typed, categorized exceptions for all Awoof failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST error envelope {"success": false, "error": {...}}
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AwoofError base: FastAPI global handler catches all (ADR: uniform error shape)
    - One subclass per HTTP status the API answers with: handlers raise by intent, not by number
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    vendor_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class AwoofError(Exception):
    """Base exception for all Awoof errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.details = details

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        error: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "statusCode": self.http_status,
            "category": self.category.value,
            "severity": self.severity.value,
        }
        if self.details is not None:
            error["details"] = self.details
        return {"success": False, "error": error}


# ─── Client Errors (400-level) ──────────────────────────────────

class BadRequestError(AwoofError):
    """Request is well-formed but violates a business rule."""
    def __init__(self, message: str = "Bad request", details: Any = None):
        super().__init__(
            message, "BAD_REQUEST", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, None, 400, details,
        )


class UnauthorizedError(AwoofError):
    """Missing, invalid or expired credentials."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, None, 401,
        )


class ForbiddenError(AwoofError):
    """Authenticated caller lacks the required role."""
    def __init__(self, message: str = "Forbidden"):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, None, 403,
        )


class NotFoundError(AwoofError):
    """Requested resource does not exist."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message, "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, None, 404,
        )


class ConflictError(AwoofError):
    """Resource already exists."""
    def __init__(self, message: str = "Resource already exists"):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, None, 409,
        )


class ValidationError(AwoofError):
    """Semantic validation failed after schema parsing."""
    def __init__(self, message: str = "Validation failed", details: Any = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, None, 422, details,
        )


class RateLimitError(AwoofError):
    """Caller exceeded an allowed request rate."""
    def __init__(self, message: str = "Too many requests", retry_after_ms: int | None = None):
        super().__init__(
            message, "RATE_LIMIT_EXCEEDED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ErrorContext(retry_after_ms=retry_after_ms), 429,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class InternalServerError(AwoofError):
    """Unexpected internal failure."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(
            message, "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, None, 500,
        )


class ExternalServiceError(AwoofError):
    """Third-party API (Paystack, WhatsApp, Brevo, registry) failed."""
    def __init__(self, message: str, service: str):
        super().__init__(
            f"{service} error: {message}",
            "EXTERNAL_SERVICE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, None, 502,
        )
        self.service = service


class ServiceUnavailableError(AwoofError):
    """A dependency is temporarily unavailable."""
    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(
            message, "SERVICE_UNAVAILABLE", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, None, 503,
        )


class DatabaseError(AwoofError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
