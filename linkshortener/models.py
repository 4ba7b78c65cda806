"""SQLAlchemy ORM models for the link shortener application.

This module defines the database schema using SQLAlchemy declarative models
with proper indexing and timestamp management for links and their owners.

Data Model Layout
=================
::
    users table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ username (VARCHAR(20) UNIQUE)
    ├─ email (VARCHAR(255) UNIQUE)
    ├─ plan (VARCHAR(16), 'free' | 'premium')
    ├─ role (VARCHAR(16), 'user' | 'admin')
    ├─ link_count / max_links (INTEGER)
    └─ premium_expiry (TIMESTAMPTZ NULL)

    links table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ url_id (VARCHAR(64) UNIQUE, INDEXED)
    ├─ custom_slug (VARCHAR(64) UNIQUE NULL)
    ├─ original_url (TEXT NOT NULL)
    ├─ short_url (TEXT NOT NULL)
    ├─ owner_id (FK users.id, NULL only for system links)
    ├─ clicks (INTEGER DEFAULT 0)
    ├─ last_accessed_at (TIMESTAMPTZ NULL)
    ├─ is_active (BOOLEAN DEFAULT TRUE)
    ├─ created_at (TIMESTAMPTZ, DEFAULT NOW())
    └─ updated_at (TIMESTAMPTZ, DEFAULT NOW(), ON UPDATE)

How to Use
===========
**Step 1: Import**::
    from linkshortener.models import Link, User

**Step 2: Create a new link**::
    link = Link(url_id="abc123", original_url="https://example.com",
                short_url="http://sho.rt/abc123", owner_id=user.id)
    db.add(link)
    await db.commit()

**Step 3: Query links**::
    result = await db.execute(select(Link).where(Link.url_id == "abc123"))
    link = result.scalar_one_or_none()

Key Behaviours
===============
- url_id is indexed for fast lookups during redirects.
- custom_slug is NULL for generated identifiers; NULLs never collide on the
  unique index, so only user-chosen slugs compete for it.
- created_at and updated_at are managed by the database.
- owner_id may only be NULL on links flagged ``is_user_link = False``.

Classes:
    User:  Account that owns links and carries the plan quota.
    Link:  A shortened URL mapping with click tracking.
"""

import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, validates

from linkshortener.config import get_settings
from linkshortener.database import Base
from linkshortener.enums import UserPlan, UserRole

__all__ = ["User", "Link"]


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    role: Mapped[str] = mapped_column(String(16), default=UserRole.USER.value, nullable=False)
    plan: Mapped[str] = mapped_column(String(16), default=UserPlan.FREE.value, nullable=False)
    premium_expiry: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    link_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_links: Mapped[int] = mapped_column(
        Integer, default=lambda: get_settings().FREE_PLAN_MAX_LINKS, nullable=False
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_premium(self) -> bool:
        return self.plan == UserPlan.PREMIUM

    def apply_plan(self, plan: UserPlan, max_links: int) -> None:
        self.plan = plan.value
        self.max_links = max_links
        if plan is UserPlan.FREE:
            self.premium_expiry = None

    def check_premium_expiry(self, now: datetime.datetime, free_max_links: int) -> bool:
        """Downgrade an expired premium plan. Returns True if the user changed."""
        if not self.is_premium or self.premium_expiry is None:
            return False
        expiry = self.premium_expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=datetime.timezone.utc)
        if expiry >= now:
            return False
        self.apply_plan(UserPlan.FREE, free_max_links)
        return True

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', plan='{self.plan}')>"


class Link(Base):
    __tablename__ = "links"
    __table_args__ = (
        CheckConstraint("owner_id IS NOT NULL OR NOT is_user_link", name="ck_links_owner_required"),
        CheckConstraint("clicks >= 0", name="ck_links_clicks_non_negative"),
        Index("ix_links_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    url_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    custom_slug: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    short_url: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    is_user_link: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_accessed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @validates("custom_slug")
    def _blank_slug_is_absent(self, key: str, value: str | None) -> str | None:
        # An empty string would collide on the unique index; store NULL instead.
        return value or None

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, url_id='{self.url_id}', clicks={self.clicks})>"
