"""FastAPI route definitions for the link shortener REST API.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    GET    /api/me                         (auth)
    POST   /api/upgrade-premium            (auth)
    POST   /api/shorten                    (auth, premium)
        ├─ ShortenRequest (request body)
        └─ Envelope[LinkData] (200) or 400/403/500
    PUT    /api/update-slug/:url_id        (auth)
        └─ Envelope[LinkData] (200) or 400/404/500
    GET    /api/urls                       (auth)
    GET    /api/stats/:url_id              (auth, owner only)
    DELETE /api/urls/:url_id               (auth, owner only)

    GET    /api/admin/links                (admin)
    POST   /api/admin/links                (admin)
    PUT    /api/admin/links/:id/toggle-status (admin)
    DELETE /api/admin/links/:id            (admin)

    GET    /:url_id
        └─ 302 Redirect or 404

Key Behaviours
===============
- Service errors are raised as ``LinkServiceError`` and rendered as
  ``{"success": false, "kind": ..., "message": ...}`` by the handlers in
  ``linkshortener.main``.
- Bodies and responses use camelCase keys.
- The redirect route is registered last so it never shadows API paths.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy import text

from linkshortener.dependencies import (
    RequestContext,
    get_current_user,
    get_link_service,
    get_request_context,
    require_admin,
)
from linkshortener.enums import HealthStatus, UserPlan
from linkshortener.link_service import LinkService
from linkshortener.models import User
from linkshortener.schemas import (
    AdminLinkPage,
    Envelope,
    HealthResponse,
    LinkData,
    LinkDetail,
    LinkStats,
    MessageEnvelope,
    Pagination,
    ShortenRequest,
    SlugUpdateRequest,
    SystemLinkRequest,
    UserPublic,
)
from linkshortener.store import UserStore

__all__ = ["router"]

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.database.execute(text("SELECT 1"))
    except Exception as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=db_status, database=db_status)


# ============================================================================
# ACCOUNT
# ============================================================================


@router.get("/api/me", response_model=Envelope[UserPublic], tags=["account"])
async def me(user: User = Depends(get_current_user)) -> Envelope[UserPublic]:
    return Envelope[UserPublic](data=UserPublic.model_validate(user))


@router.post("/api/upgrade-premium", response_model=Envelope[UserPublic], tags=["account"])
async def upgrade_premium(
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
) -> Envelope[UserPublic]:
    user.apply_plan(UserPlan.PREMIUM, ctx.settings.max_links_for(UserPlan.PREMIUM))
    user = await UserStore(ctx.database).save(user)
    ctx.logger.info(f"User {user.id} upgraded to premium")
    return Envelope[UserPublic](data=UserPublic.model_validate(user))


# ============================================================================
# LINKS
# ============================================================================


@router.post("/api/shorten", response_model=Envelope[LinkData], tags=["links"])
async def shorten_url(
    payload: ShortenRequest,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> Envelope[LinkData]:
    ctx.add_tag("link_creation")
    ctx.logger.info(
        f"Link shortening requested: {payload.original_url}",
        extra={
            "operation": "create_link",
            "target_url": payload.original_url,
            "custom_slug": payload.custom_slug,
        },
    )

    link = await service.create_link(
        user,
        payload.original_url,
        custom_slug=payload.custom_slug,
        use_random_slug=payload.use_random_slug,
    )

    ctx.logger.info(
        f"Link shortened successfully: {link.url_id}",
        extra={"operation": "create_link", "url_id": link.url_id, "duration_ms": ctx.get_duration()},
    )
    return Envelope[LinkData](data=LinkData.model_validate(link))


@router.put("/api/update-slug/{url_id}", response_model=Envelope[LinkData], tags=["links"])
async def update_slug(
    url_id: str,
    payload: SlugUpdateRequest,
    user: User = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> Envelope[LinkData]:
    link = await service.update_slug(user, url_id, payload.new_slug)
    return Envelope[LinkData](data=LinkData.model_validate(link))


@router.get("/api/urls", response_model=Envelope[list[LinkStats]], tags=["links"])
async def list_urls(
    page: int | None = Query(None, ge=1),
    limit: int | None = Query(None, ge=1),
    user: User = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> Envelope[list[LinkStats]]:
    """Every link the caller owns, newest first. ``page``/``limit`` opt into paging."""
    links = await service.list_links(user, page, limit)
    return Envelope[list[LinkStats]](data=[LinkStats.model_validate(link) for link in links])


@router.get("/api/stats/{url_id}", response_model=Envelope[LinkStats], tags=["links"])
async def get_stats(
    url_id: str,
    user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> Envelope[LinkStats]:
    ctx.logger.info(f"Stats requested for: {url_id}")
    link = await service.get_link_stats(user, url_id)
    return Envelope[LinkStats](data=LinkStats.model_validate(link))


@router.delete("/api/urls/{url_id}", response_model=MessageEnvelope, tags=["links"])
async def delete_url(
    url_id: str,
    user: User = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> MessageEnvelope:
    await service.delete_link(user, url_id)
    return MessageEnvelope(message="Link deleted")


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/api/admin/links", response_model=Envelope[AdminLinkPage], tags=["admin"])
async def admin_list_links(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    admin: User = Depends(require_admin),
    service: LinkService = Depends(get_link_service),
) -> Envelope[AdminLinkPage]:
    listing = await service.list_all_links(page, limit)
    return Envelope[AdminLinkPage](
        data=AdminLinkPage(
            links=[LinkDetail.model_validate(link) for link in listing.links],
            pagination=Pagination(
                page=listing.page,
                total_pages=listing.total_pages,
                total_links=listing.total_links,
                has_next=listing.has_next,
                has_prev=listing.has_prev,
            ),
        )
    )


@router.post("/api/admin/links", response_model=Envelope[LinkDetail], tags=["admin"])
async def admin_create_link(
    payload: SystemLinkRequest,
    admin: User = Depends(require_admin),
    service: LinkService = Depends(get_link_service),
) -> Envelope[LinkDetail]:
    link = await service.create_system_link(payload.original_url, payload.custom_slug)
    return Envelope[LinkDetail](data=LinkDetail.model_validate(link))


@router.put("/api/admin/links/{link_id}/toggle-status", response_model=Envelope[LinkDetail], tags=["admin"])
async def admin_toggle_link(
    link_id: int,
    admin: User = Depends(require_admin),
    service: LinkService = Depends(get_link_service),
) -> Envelope[LinkDetail]:
    link = await service.toggle_link_status(link_id)
    return Envelope[LinkDetail](data=LinkDetail.model_validate(link))


@router.delete("/api/admin/links/{link_id}", response_model=MessageEnvelope, tags=["admin"])
async def admin_delete_link(
    link_id: int,
    admin: User = Depends(require_admin),
    service: LinkService = Depends(get_link_service),
) -> MessageEnvelope:
    await service.delete_link_by_id(link_id)
    return MessageEnvelope(message="Link deleted")


# ============================================================================
# REDIRECT
# ============================================================================


@router.get("/{url_id}", tags=["redirect"])
async def redirect_to_url(
    url_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> RedirectResponse:
    ctx.add_tag("redirect")
    destination = await service.resolve(url_id)

    ctx.logger.info(
        f"Redirect successful: {url_id} -> {destination}",
        extra={"operation": "redirect", "url_id": url_id, "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=destination, status_code=ctx.settings.REDIRECT_STATUS_CODE)
