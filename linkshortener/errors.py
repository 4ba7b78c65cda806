"""Failure taxonomy for link creation, slug updates and redirects.

Every error carries a stable ``kind`` (see :class:`ErrorKind`) plus a
human-readable message, and the HTTP status the API layer renders it with.
"""

from linkshortener.enums import ErrorKind

__all__ = [
    "LinkServiceError",
    "InvalidUrl",
    "InvalidSlugFormat",
    "SlugConflict",
    "SlugExhausted",
    "QuotaExceeded",
    "PlanRequired",
    "NotFoundOrForbidden",
    "LinkNotFound",
    "DuplicateKey",
    "StoreUnavailable",
]


class LinkServiceError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidUrl(LinkServiceError):
    kind = ErrorKind.INVALID_URL
    status_code = 400
    default_message = "Invalid URL"


class InvalidSlugFormat(LinkServiceError):
    kind = ErrorKind.INVALID_SLUG_FORMAT
    status_code = 400
    default_message = "Slug may only contain letters, digits, hyphens and underscores"


class SlugConflict(LinkServiceError):
    kind = ErrorKind.SLUG_CONFLICT
    status_code = 400
    default_message = "This slug is already in use"


class SlugExhausted(LinkServiceError):
    kind = ErrorKind.SLUG_EXHAUSTED
    status_code = 500
    default_message = "Could not allocate a free slug"


class QuotaExceeded(LinkServiceError):
    kind = ErrorKind.QUOTA_EXCEEDED
    status_code = 400
    default_message = "Link limit reached"


class PlanRequired(LinkServiceError):
    kind = ErrorKind.PLAN_REQUIRED
    status_code = 403
    default_message = "Only premium accounts can shorten links. Please upgrade!"


class NotFoundOrForbidden(LinkServiceError):
    """Raised for both missing links and links owned by someone else."""

    kind = ErrorKind.NOT_FOUND_OR_FORBIDDEN
    status_code = 404
    default_message = "Link not found or you do not have access to it"


class LinkNotFound(LinkServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Short URL not found"


class DuplicateKey(LinkServiceError):
    kind = ErrorKind.DUPLICATE_KEY
    status_code = 409
    default_message = "Duplicate key"


class StoreUnavailable(LinkServiceError):
    kind = ErrorKind.STORE_UNAVAILABLE
    status_code = 503
    default_message = "Storage is unavailable"
