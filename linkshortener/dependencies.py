"""Dependency injection with a singleton service manager.

This module provides a centralized way to inject the database session, the
authenticated user and the link service into API endpoints, using a
singleton for shared resources to minimize per-request overhead.
"""

import datetime
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from linkshortener.auth import InvalidToken, decode_access_token
from linkshortener.config import Settings, get_settings
from linkshortener.database import get_db
from linkshortener.link_service import LinkService
from linkshortener.models import User
from linkshortener.store import UserStore

__all__ = [
    "RequestContext",
    "ServiceManager",
    "get_current_user",
    "get_link_service",
    "get_request_context",
    "get_service_manager",
    "require_admin",
]

TOKEN_COOKIE = "token"

bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton service manager for shared resources (settings and logger)."""

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "ServiceManager":
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def initialize(self) -> None:
        """Initialize shared resources once at startup."""
        if not self._initialized:
            self.settings = get_settings()
            self.logger = self._setup_logger(self.settings)
            self._initialized = True

    def _setup_logger(self, settings: Settings) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger("linkshortener")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(settings.LOG_LEVEL.upper())
        return logger

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request context with tracking and shared resource access.

    Attributes:
        database: Async database session (only per-request resource)
        service_manager: Singleton service manager with shared resources
        request_id: Unique identifier for this request
        trace_id: Correlation ID for distributed tracing
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
        tags: Request tags for categorization
    """

    database: AsyncSession
    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace_id: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())
    tags: list[str] = field(default_factory=list)

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Get shared logger with request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "trace_id": self.trace_id or self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
                "tags": ",".join(self.tags),
            },
        )

    @property
    def settings(self) -> Settings:
        """Get shared settings."""
        return self.service_manager.settings

    def add_tag(self, tag: str) -> None:
        """Add a tag to the request context."""
        if tag not in self.tags:
            self.tags.append(tag)

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager._initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    client_ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    trace_id = request.headers.get("x-trace-id")

    return RequestContext(
        database=db,
        service_manager=manager,
        trace_id=trace_id,
        user_agent=user_agent,
        client_ip=client_ip,
    )


def get_link_service(ctx: RequestContext = Depends(get_request_context)) -> LinkService:
    return LinkService.from_context(ctx)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ctx: RequestContext = Depends(get_request_context),
) -> User:
    """Load the account behind the bearer token (or ``token`` cookie).

    Expired premium plans are downgraded here, on first use after expiry.
    """
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        user_id = decode_access_token(token, ctx.settings)
    except InvalidToken as exc:
        ctx.logger.info(f"Rejected token: {exc}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    users = UserStore(ctx.database)
    user = await users.get(user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found or disabled")

    now = datetime.datetime.now(datetime.timezone.utc)
    if user.check_premium_expiry(now, ctx.settings.FREE_PLAN_MAX_LINKS):
        ctx.logger.info(f"Premium plan expired for user {user.id}, downgraded to free")
        user = await users.save(user)

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
