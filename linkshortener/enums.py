"""Shared enums for the link shortener application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "UserPlan", "UserRole", "ErrorKind"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    ERROR = "error"
    NOT_FOUND = "not_found"


class UserPlan(StrEnum):
    """Subscription plans; only premium accounts may shorten links."""

    FREE = "free"
    PREMIUM = "premium"

    @classmethod
    def from_str(cls, value: str) -> "UserPlan":
        """Safely parse from string, falling back to FREE for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.FREE


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


class ErrorKind(StrEnum):
    """Machine-checkable failure kinds returned in error envelopes."""

    INVALID_URL = "invalid_url"
    INVALID_SLUG_FORMAT = "invalid_slug_format"
    SLUG_CONFLICT = "slug_conflict"
    SLUG_EXHAUSTED = "slug_exhausted"
    QUOTA_EXCEEDED = "quota_exceeded"
    PLAN_REQUIRED = "plan_required"
    NOT_FOUND_OR_FORBIDDEN = "not_found_or_forbidden"
    NOT_FOUND = "not_found"
    DUPLICATE_KEY = "duplicate_key"
    STORE_UNAVAILABLE = "store_unavailable"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"
