"""Configuration management for the link shortener application.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram: get_settings()
=============================
::
    ┌──────────────┐
    │ get_settings │
    │ ()           │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lru_cache    │
    │ hit?         │
    └──────┬───────┘
           │
     ┌─────┴──────┐
     │ NO         │ YES
     ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1: Import**::
    from linkshortener.config import get_settings

**Step 2: Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

**Step 3: Derive plan limits**::
    limit = settings.max_links_for("premium")

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- Plan link limits live here so the User model and the admin surface agree.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from linkshortener.enums import UserPlan


class Settings(BaseSettings):
    APP_NAME: str = "link-shortener"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://linkshortener:linkshortener@db:5432/linkshortener"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Slug allocation
    RANDOM_SLUG_LENGTH: int = 8
    DEFAULT_SLUG_LENGTH: int = 10
    SLUG_MAX_ATTEMPTS: int = 20

    # Plan quotas
    FREE_PLAN_MAX_LINKS: int = 100
    PREMIUM_PLAN_MAX_LINKS: int = 10000

    # Listing
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    REDIRECT_STATUS_CODE: int = 302

    # Bearer tokens issued by the account service
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    def max_links_for(self, plan: str) -> int:
        if UserPlan.from_str(plan) is UserPlan.PREMIUM:
            return self.PREMIUM_PLAN_MAX_LINKS
        return self.FREE_PLAN_MAX_LINKS


@lru_cache()
def get_settings() -> Settings:
    return Settings()
