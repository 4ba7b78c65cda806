"""FastAPI application entry point for the link shortener service.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ init_db()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ close_db()  │
    └─────────────┘

How to Use
===========
**Step 1: Run with uvicorn**::
    uvicorn linkshortener.main:app --host 0.0.0.0 --port 3000 --reload

**Step 2: Make API calls**::
    curl -X POST http://localhost:3000/api/shorten \\
         -H "Authorization: Bearer $TOKEN" \\
         -H "Content-Type: application/json" \\
         -d '{"originalUrl": "https://example.com", "useRandomSlug": true}'

Key Behaviours
===============
- Database tables are created automatically on startup.
- Every failure leaves the API as ``{"success": false, "kind", "message"}``.
- Request validation failures are reported as 400, like the service's own
  input errors.
- Prometheus metrics are exposed on /metrics.
"""

__all__ = ["app"]

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from linkshortener.config import get_settings
from linkshortener.database import close_db, init_db
from linkshortener.dependencies import _service_manager
from linkshortener.enums import ErrorKind
from linkshortener.errors import LinkServiceError
from linkshortener.routes import router
from linkshortener.schemas import ErrorEnvelope

settings = get_settings()

_HTTP_ERROR_KINDS = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await init_db()
    await _service_manager.initialize()
    yield
    # Shutdown
    await _service_manager.cleanup()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Premium link shortener API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, kind: ErrorKind, message: str) -> JSONResponse:
    body = ErrorEnvelope(kind=kind, message=message).model_dump(mode="json", by_alias=True)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(LinkServiceError)
async def link_service_error_handler(request: Request, exc: LinkServiceError) -> JSONResponse:
    return _error_response(exc.status_code, exc.kind, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    fallback = ErrorKind.INTERNAL_ERROR if exc.status_code >= 500 else ErrorKind.VALIDATION_ERROR
    kind = _HTTP_ERROR_KINDS.get(exc.status_code, fallback)
    response = _error_response(exc.status_code, kind, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors) or "Invalid request"
    return _error_response(400, ErrorKind.VALIDATION_ERROR, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.getLogger("linkshortener").exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, ErrorKind.INTERNAL_ERROR, "Internal server error")


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
