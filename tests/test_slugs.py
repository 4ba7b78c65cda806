"""Unit tests for slug generation, validation and bounded allocation."""

from unittest.mock import patch

import pytest

from linkshortener.errors import InvalidSlugFormat, SlugConflict, SlugExhausted
from linkshortener.slugs import (
    ALPHANUMERIC_ALPHABET,
    SLUG_PATTERN,
    SlugAllocator,
    generate_default,
    generate_random,
    validate_custom,
)


class FakeLookup:
    def __init__(self, taken: set[str] | None = None):
        self.taken = taken or set()
        self.calls: list[str] = []

    async def is_taken(self, url_id: str) -> bool:
        self.calls.append(url_id)
        return url_id in self.taken


def test_generate_random_default_length() -> None:
    assert len(generate_random()) == 8


def test_generate_random_custom_length() -> None:
    assert len(generate_random(12)) == 12


def test_generate_random_only_alphanumeric() -> None:
    for _ in range(200):
        assert all(c in ALPHANUMERIC_ALPHABET for c in generate_random())


def test_generate_random_rejects_non_positive_length() -> None:
    with pytest.raises(ValueError):
        generate_random(0)


def test_generate_random_uniqueness() -> None:
    codes = {generate_random() for _ in range(1000)}
    # 62^8 possibilities, 1000 draws should not collide
    assert len(codes) == 1000


def test_generate_default_is_a_valid_slug() -> None:
    for _ in range(200):
        slug = generate_default(10)
        assert len(slug) == 10
        assert SLUG_PATTERN.fullmatch(slug)


@pytest.mark.parametrize("candidate", ["abc", "My-Slug_2", "-", "_", "A" * 64, "0123456789"])
def test_validate_custom_accepts(candidate: str) -> None:
    assert validate_custom(candidate) is True


@pytest.mark.parametrize("candidate", ["", "has space", "a/b", "dot.ted", "emoji🙂", "trailing\n", "ümlaut", None, 42])
def test_validate_custom_rejects(candidate) -> None:
    assert validate_custom(candidate) is False


@pytest.mark.asyncio
async def test_allocate_random_returns_free_candidate() -> None:
    allocator = SlugAllocator(FakeLookup())
    slug = await allocator.allocate_random()
    assert len(slug) == 8
    assert all(c in ALPHANUMERIC_ALPHABET for c in slug)


@pytest.mark.asyncio
async def test_allocate_random_retries_past_collisions() -> None:
    lookup = FakeLookup({"taken001", "taken002"})
    allocator = SlugAllocator(lookup)
    with patch("linkshortener.slugs.generate_random", side_effect=["taken001", "taken002", "free0001"]):
        slug = await allocator.allocate_random()

    assert slug == "free0001"
    assert lookup.calls == ["taken001", "taken002", "free0001"]


@pytest.mark.asyncio
async def test_allocate_random_gives_up_after_cap() -> None:
    lookup = FakeLookup({"samesame"})
    allocator = SlugAllocator(lookup, max_attempts=5)
    with patch("linkshortener.slugs.generate_random", return_value="samesame"):
        with pytest.raises(SlugExhausted):
            await allocator.allocate_random()

    assert len(lookup.calls) == 5


@pytest.mark.asyncio
async def test_allocate_default_uses_configured_length() -> None:
    allocator = SlugAllocator(FakeLookup(), default_length=14)
    assert len(await allocator.allocate_default()) == 14


@pytest.mark.asyncio
async def test_claim_custom_free_slug() -> None:
    allocator = SlugAllocator(FakeLookup())
    assert await allocator.claim_custom("my-link") == "my-link"


@pytest.mark.asyncio
async def test_claim_custom_taken_slug() -> None:
    allocator = SlugAllocator(FakeLookup({"my-link"}))
    with pytest.raises(SlugConflict):
        await allocator.claim_custom("my-link")


@pytest.mark.asyncio
async def test_claim_custom_is_case_sensitive() -> None:
    allocator = SlugAllocator(FakeLookup({"my-link"}))
    assert await allocator.claim_custom("My-Link") == "My-Link"


@pytest.mark.asyncio
async def test_claim_custom_bad_format_skips_lookup() -> None:
    lookup = FakeLookup()
    allocator = SlugAllocator(lookup)
    with pytest.raises(InvalidSlugFormat):
        await allocator.claim_custom("not valid!")
    assert lookup.calls == []


def test_allocator_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        SlugAllocator(FakeLookup(), max_attempts=0)
