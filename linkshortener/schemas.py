"""Pydantic schemas for request/response validation in the link shortener.

This module defines Pydantic models for API input parsing and output serialization.
Field names are snake_case in Python and camelCase on the wire.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    ├─ originalUrl: str
    ├─ customSlug: str | None
    └─ useRandomSlug: bool

    SlugUpdateRequest (Input)
    └─ newSlug: str | None

    SystemLinkRequest (Input, admin)
    ├─ originalUrl: str
    └─ customSlug: str | None

    LinkData (Output)
    ├─ originalUrl, shortUrl, urlId, customSlug
    └─ clicks, createdAt

    LinkStats / LinkDetail (Output)
    └─ LinkData + lastAccessedAt, isActive (+ id, ownerId, isUserLink)

    Envelope[T] (Output)
    ├─ success: bool
    └─ data: T

    ErrorEnvelope (Output)
    ├─ success: False
    ├─ kind: ErrorKind
    └─ message: str

Key Behaviours
===============
- URL and slug checks are deliberately NOT schema validators: they belong
  to the service layer so failures carry the service error kinds and 400s.
- Models read straight from ORM rows (``from_attributes``).
- FastAPI serializes by alias, so responses come out camelCase.

Classes:
    ShortenRequest:  Input schema for link shortening.
    SlugUpdateRequest:  Input schema for slug changes.
    SystemLinkRequest:  Input schema for administrative link creation.
    LinkData:  Public link fields returned after create/update.
    LinkStats:  Click statistics for one link.
    LinkDetail:  Admin view of a link.
    UserPublic:  Public fields of the authenticated account.
    Pagination:  Page metadata for admin listings.
    Envelope:  Generic success wrapper.
    ErrorEnvelope:  Failure wrapper.
    HealthResponse:  Output schema for health checks.
"""

import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from linkshortener.enums import ErrorKind, HealthStatus

__all__ = [
    "ShortenRequest",
    "SlugUpdateRequest",
    "SystemLinkRequest",
    "LinkData",
    "LinkStats",
    "LinkDetail",
    "UserPublic",
    "Pagination",
    "AdminLinkPage",
    "Envelope",
    "MessageEnvelope",
    "ErrorEnvelope",
    "HealthResponse",
]

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ShortenRequest(CamelModel):
    original_url: str
    custom_slug: str | None = None
    use_random_slug: bool = False


class SlugUpdateRequest(CamelModel):
    new_slug: str | None = None


class SystemLinkRequest(CamelModel):
    original_url: str
    custom_slug: str | None = None


class LinkData(CamelModel):
    original_url: str
    short_url: str
    url_id: str
    custom_slug: str | None = None
    clicks: int
    created_at: datetime.datetime


class LinkStats(CamelModel):
    original_url: str
    short_url: str
    url_id: str
    clicks: int
    created_at: datetime.datetime
    last_accessed_at: datetime.datetime | None = None
    is_active: bool


class LinkDetail(LinkStats):
    id: int
    custom_slug: str | None = None
    owner_id: int | None = None
    is_user_link: bool


class UserPublic(CamelModel):
    id: int
    username: str
    email: str
    full_name: str
    role: str
    plan: str
    link_count: int
    max_links: int


class Pagination(CamelModel):
    page: int
    total_pages: int
    total_links: int
    has_next: bool
    has_prev: bool


class AdminLinkPage(CamelModel):
    links: list[LinkDetail]
    pagination: Pagination


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    data: T


class MessageEnvelope(CamelModel):
    success: bool = True
    message: str


class ErrorEnvelope(CamelModel):
    success: bool = False
    kind: ErrorKind
    message: str = Field(..., description="Human-readable failure description")


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
