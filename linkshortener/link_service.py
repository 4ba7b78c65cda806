"""Link Service Layer - Core Business Logic

This module provides the service layer for link creation, slug changes,
redirect resolution and link removal.

Architecture Overview
==================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                    Service Layer                            │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │  Link Service   │  │ Slug Allocator  │  │  Link Store  │ │
    │  │                 │  │                 │  │  User Store  │ │
    │  │ • Create links  │  │ • Random slugs  │  │ • CRUD       │ │
    │  │ • Update slugs  │  │ • Default slugs │  │ • Atomic INC │ │
    │  │ • Resolve/track │  │ • Custom slugs  │  │              │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                                     │
                                     ▼
                         ┌─────────────────────┐
                         │     PostgreSQL      │
                         └─────────────────────┘

Request Flow Diagrams
=====================

Link Creation Flow
------------------
::
    ┌──────────────┐
    │ POST /api/   │
    │ shorten      │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Plan is      │──NO──▶ PlanRequired (403)
    │ premium?     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ URL is       │──NO──▶ InvalidUrl (400)
    │ well-formed? │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Under quota? │──NO──▶ QuotaExceeded (400)
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Resolve slug │──▶ InvalidSlugFormat / SlugConflict / SlugExhausted
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ INSERT link  │──DuplicateKey──▶ SlugConflict
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ link_count+1 │  (best effort, logged on failure)
    └──────────────┘

Redirect Flow
-------------
::
    ┌──────────────┐
    │ GET /:url_id │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Lookup by    │──missing / inactive──▶ LinkNotFound (404)
    │ url_id       │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ UPDATE clicks│
    │ = clicks + 1 │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ 302 Redirect │
    └──────────────┘

Usage Examples
=============

```python
@router.post("/api/shorten")
async def shorten(
    payload: ShortenRequest,
    user: User = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
):
    link = await service.create_link(user, payload.original_url, payload.custom_slug, payload.use_random_slug)
    return Envelope[LinkData](data=LinkData.model_validate(link))
```
"""

import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import validators
from prometheus_client import Counter, Histogram

from linkshortener.enums import RequestStatus, UserPlan
from linkshortener.errors import (
    DuplicateKey,
    InvalidSlugFormat,
    InvalidUrl,
    LinkNotFound,
    LinkServiceError,
    NotFoundOrForbidden,
    PlanRequired,
    QuotaExceeded,
    SlugConflict,
    StoreUnavailable,
)
from linkshortener.models import Link, User
from linkshortener.slugs import SlugAllocator, validate_custom
from linkshortener.store import LinkStore, UserStore

if TYPE_CHECKING:
    from linkshortener.dependencies import RequestContext


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

LINK_CREATION_REQUESTS_TOTAL = Counter(
    "link_shortener_creation_requests_total",
    "Total link creation requests",
    ["status"],
)
LINK_CREATION_DURATION = Histogram(
    "link_shortener_creation_duration_seconds",
    "Time taken to create short links",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
REDIRECT_REQUESTS_TOTAL = Counter(
    "link_shortener_redirect_requests_total",
    "Total redirect requests",
    ["status"],
)
OWNER_COUNTER_FAILURES_TOTAL = Counter(
    "link_shortener_owner_counter_failures_total",
    "Owner link_count adjustments that failed and were skipped",
)

# Destinations must be web locations a browser can be redirected to.
REDIRECT_SCHEMES = frozenset({"http", "https"})


@dataclass
class AdminLinkListing:
    links: list[Link]
    page: int
    total_pages: int
    total_links: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class LinkService:
    """Core service class for link lifecycle and redirect operations.

    Example:
        >>> service = LinkService.from_context(ctx)
        >>> link = await service.create_link(user, "https://example.com", use_random_slug=True)
        >>> destination = await service.resolve(link.url_id)
    """

    def __init__(self, ctx: "RequestContext"):
        self._db = ctx.database
        self._logger = ctx.logger
        self._settings = ctx.settings
        self._links = LinkStore(self._db)
        self._users = UserStore(self._db)
        self._slugs = SlugAllocator(
            self._links,
            random_length=self._settings.RANDOM_SLUG_LENGTH,
            default_length=self._settings.DEFAULT_SLUG_LENGTH,
            max_attempts=self._settings.SLUG_MAX_ATTEMPTS,
            logger=self._logger,
        )

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "LinkService":
        return cls(ctx)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def create_link(
        self,
        user: User,
        original_url: str,
        custom_slug: str | None = None,
        use_random_slug: bool = False,
    ) -> Link:
        """Create a link owned by ``user``.

        The owner's ``link_count`` is bumped after the insert; if that fails
        the link is kept and the drift is logged.

        Raises:
            PlanRequired: the user is not on the premium plan.
            InvalidUrl: ``original_url`` is not a well-formed URL.
            QuotaExceeded: ``link_count`` already reached ``max_links``.
            InvalidSlugFormat, SlugConflict: the custom slug is unusable.
            SlugExhausted: no free generated slug within the retry cap.
        """
        start_time = time.perf_counter()
        user_id = user.id

        try:
            if user.plan != UserPlan.PREMIUM:
                raise PlanRequired()
            self._check_url(original_url)
            if user.link_count >= user.max_links:
                raise QuotaExceeded(f"Link limit reached ({user.max_links})")

            url_id, chosen_slug = await self._resolve_identifier(custom_slug, use_random_slug)
            link = await self._insert(
                Link(
                    url_id=url_id,
                    custom_slug=chosen_slug,
                    original_url=original_url,
                    short_url=self._short_url(url_id),
                    owner_id=user_id,
                    is_user_link=True,
                )
            )
            # A failed counter update rolls the session back and would expire the link.
            self._db.expunge(link)
            await self._adjust_owner_count(user_id, 1)

        except LinkServiceError as exc:
            LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)
            status = RequestStatus.VALIDATION_ERROR if exc.status_code < 500 else RequestStatus.ERROR
            LINK_CREATION_REQUESTS_TOTAL.labels(status=status).inc()
            self._logger.warning(f"Link creation rejected for user {user_id}: {exc.kind} {exc.message}")
            raise
        except Exception as exc:
            LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)
            LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Link creation error for user {user_id}: {exc}")
            raise

        duration = time.perf_counter() - start_time
        LINK_CREATION_DURATION.observe(duration)
        LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Link created: {link.url_id} for user {user_id} in {duration:.3f}s")
        return link

    async def create_system_link(self, original_url: str, custom_slug: str | None = None) -> Link:
        """Create a link that belongs to no user (administrative creation)."""
        self._check_url(original_url)
        url_id, chosen_slug = await self._resolve_identifier(custom_slug, use_random_slug=False)
        link = await self._insert(
            Link(
                url_id=url_id,
                custom_slug=chosen_slug,
                original_url=original_url,
                short_url=self._short_url(url_id),
                owner_id=None,
                is_user_link=False,
            )
        )
        self._logger.info(f"System link created: {link.url_id}")
        return link

    async def update_slug(self, user: User, url_id: str, new_slug: str | None) -> Link:
        """Rename one of the user's links.

        A link owned by someone else is reported exactly like a missing one.
        """
        user_id = user.id
        if not new_slug:
            raise InvalidSlugFormat("Please provide a new slug")
        if not validate_custom(new_slug):
            raise InvalidSlugFormat()

        existing = await self._links.find_by_identifier(new_slug)
        if existing is not None and existing.url_id != url_id:
            self._logger.info(f"Slug update rejected, {new_slug} already in use")
            raise SlugConflict(f"Slug '{new_slug}' is already in use")

        link = await self._links.find_by_owned_identifier(url_id, user_id)
        if link is None:
            raise NotFoundOrForbidden()

        link.custom_slug = new_slug
        link.url_id = new_slug
        link.short_url = self._short_url(new_slug)
        try:
            link = await self._links.update(link)
        except DuplicateKey as exc:
            raise SlugConflict(f"Slug '{new_slug}' is already in use") from exc

        self._logger.info(f"Slug updated: {url_id} -> {new_slug} for user {user_id}")
        return link

    async def delete_link(self, user: User, url_id: str) -> None:
        user_id = user.id
        link = await self._links.find_by_owned_identifier(url_id, user_id)
        if link is None:
            raise NotFoundOrForbidden()
        await self._links.delete(link)
        await self._adjust_owner_count(user_id, -1)
        self._logger.info(f"Link deleted: {url_id} by user {user_id}")

    async def delete_link_by_id(self, link_id: int) -> None:
        link = await self._links.find_by_id(link_id)
        if link is None:
            raise LinkNotFound("Link not found")
        owner_id, url_id = link.owner_id, link.url_id
        await self._links.delete(link)
        if owner_id is not None:
            await self._adjust_owner_count(owner_id, -1)
        self._logger.info(f"Link deleted by admin: {url_id}")

    async def toggle_link_status(self, link_id: int) -> Link:
        link = await self._links.find_by_id(link_id)
        if link is None:
            raise LinkNotFound("Link not found")
        link.is_active = not link.is_active
        link = await self._links.update(link)
        self._logger.info(f"Link {link.url_id} is_active={link.is_active}")
        return link

    # ========================================================================
    # QUERIES
    # ========================================================================

    async def list_links(self, user: User, page: int | None = None, page_size: int | None = None) -> list[Link]:
        """All of the user's links, newest first; paged only when asked to."""
        if page is None and page_size is None:
            return await self._links.find_by_owner(user.id)
        page, page_size = self._page_bounds(page or 1, page_size)
        return await self._links.find_by_owner(user.id, page, page_size)

    async def get_link_stats(self, user: User, url_id: str) -> Link:
        link = await self._links.find_by_owned_identifier(url_id, user.id)
        if link is None:
            raise NotFoundOrForbidden()
        return link

    async def list_all_links(self, page: int = 1, page_size: int | None = None) -> AdminLinkListing:
        page, page_size = self._page_bounds(page, page_size)
        links = await self._links.list_all(page, page_size)
        total = await self._links.count_all()
        return AdminLinkListing(
            links=links,
            page=page,
            total_pages=math.ceil(total / page_size),
            total_links=total,
        )

    # ========================================================================
    # REDIRECT
    # ========================================================================

    async def resolve(self, url_id: str) -> str:
        """Return the destination for ``url_id`` and count the visit.

        Missing and inactive links raise ``LinkNotFound`` and touch nothing.
        """
        link = await self._links.find_by_identifier(url_id)
        if link is None or not link.is_active:
            REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise LinkNotFound()

        destination = link.original_url
        if not await self._links.increment_clicks(link.id):
            # deleted between lookup and increment
            REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise LinkNotFound()

        REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        return destination

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _resolve_identifier(self, custom_slug: str | None, use_random_slug: bool) -> tuple[str, str | None]:
        """Pick the identifier and the value for the custom_slug column."""
        if use_random_slug:
            return await self._slugs.allocate_random(), None
        if custom_slug:
            return await self._slugs.claim_custom(custom_slug), custom_slug
        return await self._slugs.allocate_default(), None

    async def _insert(self, link: Link) -> Link:
        url_id = link.url_id
        try:
            return await self._links.insert(link)
        except DuplicateKey as exc:
            self._logger.warning(f"Insert raced on slug {url_id}")
            raise SlugConflict(f"Slug '{url_id}' is already in use") from exc

    async def _adjust_owner_count(self, user_id: int, delta: int) -> None:
        try:
            adjusted = await self._users.adjust_link_count(user_id, delta)
        except StoreUnavailable as exc:
            OWNER_COUNTER_FAILURES_TOTAL.inc()
            self._logger.warning(f"link_count for user {user_id} not adjusted by {delta}: {exc}")
            return
        if not adjusted:
            # owner row missing, or the decrement would go below zero
            OWNER_COUNTER_FAILURES_TOTAL.inc()
            self._logger.warning(f"link_count for user {user_id} not adjusted by {delta}: no matching row")

    def _check_url(self, original_url: str) -> None:
        if not isinstance(original_url, str) or not validators.url(
            original_url, simple_host=True, validate_scheme=lambda scheme: scheme in REDIRECT_SCHEMES
        ):
            raise InvalidUrl()

    def _short_url(self, url_id: str) -> str:
        return f"{self._settings.BASE_URL.rstrip('/')}/{url_id}"

    def _page_bounds(self, page: int, page_size: int | None) -> tuple[int, int]:
        page_size = page_size or self._settings.DEFAULT_PAGE_SIZE
        return max(page, 1), min(max(page_size, 1), self._settings.MAX_PAGE_SIZE)
