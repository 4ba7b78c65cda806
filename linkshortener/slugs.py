"""Slug generation, validation and collision-checked allocation.

Flow Diagram: SlugAllocator.allocate_random()
==============================================
::
    ┌─────────────┐
    │ attempt = 1 │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ generate_   │
    │ random(8)   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ is_taken()? │
    └──────┬──────┘
           │
     ┌─────┴──────┐
     │ NO         │ YES
     ▼            ▼
┌─────────┐  ┌──────────────┐
│ Return  │  │ attempt < cap│──NO──▶ SlugExhausted
│ slug    │  │ retry        │
└─────────┘  └──────────────┘

Key Behaviours
===============
- Random slugs use the 62-character alphanumeric alphabet; collision
  resistance is the goal, not unguessability.
- Default slugs use nanoid's URL-safe alphabet, which the custom slug
  pattern also accepts.
- Both generated kinds share one bounded retry loop. The uniqueness check
  is only a fast path: the unique index on ``links.url_id`` decides races.
"""

import re
from typing import Protocol

from nanoid import generate
from prometheus_client import Counter

from linkshortener.errors import InvalidSlugFormat, SlugConflict, SlugExhausted

__all__ = [
    "ALPHANUMERIC_ALPHABET",
    "SLUG_PATTERN",
    "SlugAllocator",
    "generate_default",
    "generate_random",
    "validate_custom",
]

ALPHANUMERIC_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
URL_SAFE_ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

SLUG_COLLISIONS_TOTAL = Counter(
    "link_shortener_slug_collisions_total",
    "Generated slug candidates that were already taken",
    ["strategy"],
)


class SlugLookup(Protocol):
    async def is_taken(self, url_id: str) -> bool: ...


def generate_random(length: int = 8) -> str:
    if length <= 0:
        raise ValueError(f"length must be a positive integer, got {length!r}")
    return generate(ALPHANUMERIC_ALPHABET, length)


def generate_default(length: int = 10) -> str:
    if length <= 0:
        raise ValueError(f"length must be a positive integer, got {length!r}")
    return generate(URL_SAFE_ALPHABET, length)


def validate_custom(candidate: object) -> bool:
    if not isinstance(candidate, str) or not candidate:
        return False
    # fullmatch: "$" alone would accept a trailing newline
    return SLUG_PATTERN.fullmatch(candidate) is not None


class SlugAllocator:
    """Resolves a free identifier against a ``SlugLookup`` (normally a LinkStore)."""

    def __init__(
        self,
        lookup: SlugLookup,
        *,
        random_length: int = 8,
        default_length: int = 10,
        max_attempts: int = 20,
        logger=None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._lookup = lookup
        self._random_length = random_length
        self._default_length = default_length
        self._max_attempts = max_attempts
        self._logger = logger

    async def is_taken(self, url_id: str) -> bool:
        return await self._lookup.is_taken(url_id)

    async def allocate_random(self) -> str:
        return await self._allocate("random", lambda: generate_random(self._random_length))

    async def allocate_default(self) -> str:
        return await self._allocate("default", lambda: generate_default(self._default_length))

    async def claim_custom(self, slug: str) -> str:
        if not validate_custom(slug):
            raise InvalidSlugFormat()
        if await self.is_taken(slug):
            raise SlugConflict(f"Slug '{slug}' is already in use")
        return slug

    async def _allocate(self, strategy: str, make_candidate) -> str:
        for attempt in range(1, self._max_attempts + 1):
            candidate = make_candidate()
            if not await self.is_taken(candidate):
                return candidate
            SLUG_COLLISIONS_TOTAL.labels(strategy=strategy).inc()
            if self._logger is not None:
                self._logger.debug(f"Slug collision on {candidate} ({strategy}, attempt {attempt})")
        raise SlugExhausted(f"No free {strategy} slug after {self._max_attempts} attempts")
