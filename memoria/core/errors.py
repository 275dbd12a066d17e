"""Error Hierarchy - typed, categorized exceptions for every Memoria failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are returned to the caller and never retried automatically
    - Infrastructure errors (5xx) are critical
    - to_response() produces the REST envelope; no internal details in messages

Design Decisions:
    - Single hierarchy with MemoriaError base: one FastAPI handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
    - Core check functions return these instances (not raise); the shell raises them
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Observability context attached to an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    debug_info: dict[str, Any] | None = None


class MemoriaError(Exception):
    """Base exception for all Memoria errors."""

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
                    "resource_type": self.context.resource_type,
                    "resource_id": self.context.resource_id,
                },
            }
        }


# ─── Domain Errors (4xx) ────────────────────────────────────────

class UnauthenticatedError(MemoriaError):
    """No caller identity could be resolved."""
    def __init__(self, message: str = "Authentication required", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class UnauthorizedError(MemoriaError):
    """Caller is authenticated but lacks the role or ownership required."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(MemoriaError):
    """Requested resource does not exist (or is not visible to the caller)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_type = resource_type
        ctx.resource_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class AlreadyExistsError(MemoriaError):
    """A record with the same identity already exists."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "ALREADY_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class AlreadyMemberError(MemoriaError):
    """User is already a member of the group."""
    def __init__(self, group_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource_type = "Group"
        ctx.resource_id = group_id
        super().__init__(
            "You are already a member of this group",
            "ALREADY_MEMBER", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


class SelfReferenceError(MemoriaError):
    """Actor targets themself where that is disallowed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SELF_REFERENCE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class CapacityExceededError(MemoriaError):
    """Group is full or a member-count bound would be violated."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CAPACITY_EXCEEDED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )


class InvalidStateError(MemoriaError):
    """Action attempted outside the lifecycle stage that allows it."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )


class InvalidGroupBoundsError(MemoriaError):
    """min/max member bounds outside 2 <= min <= max <= 6."""
    def __init__(self, min_members: int, max_members: int, context: ErrorContext | None = None):
        super().__init__(
            f"Member bounds must satisfy 2 <= min <= max <= 6 "
            f"(got min={min_members}, max={max_members})",
            "INVALID_MEMBER_BOUNDS", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.min_members = min_members
        self.max_members = max_members


class InvalidScheduleError(MemoriaError):
    """Prompt reveal time precedes its activation time."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "reveal_at must not be earlier than active_at",
            "INVALID_SCHEDULE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (5xx) ────────────────────────────────

class DatabaseError(MemoriaError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
