"""
FastAPI app assembly: logging, middleware, error translation and router wiring.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("timeline.api")
logger.setLevel(LOG_LEVEL)

from timeline.api.audits import router as audits_router
from timeline.api.deps import RequestContext, get_request_context
from timeline.api.orgs import memberships_router, router as orgs_router
from timeline.api.permissions import MalformedAuthorizationRequest
from timeline.api.topics import events_router, router as topics_router
from timeline.db import schemas
from timeline.db.database import engine, init_sqlite_schema
from timeline.services.errors import (
    AccessError,
    Conflict,
    InvalidState,
    NotAuthenticated,
    NotAuthorized,
    NotFound,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Postgres schemas are managed by Alembic migrations
    init_sqlite_schema()
    logger.info("app_startup: log_level=%s database=%s", LOG_LEVEL_NAME, engine.url.get_backend_name())
    yield


app = FastAPI(
    title="Timeline Access Service",
    description="Topics, events and organizations with role-based access control.",
    version="1.0.0",
    lifespan=lifespan,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS", "http://localhost,http://localhost:3000,http://localhost:8080")
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = {
    NotAuthenticated: status.HTTP_401_UNAUTHORIZED,
    NotAuthorized: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidState: status.HTTP_409_CONFLICT,
    Conflict: status.HTTP_409_CONFLICT,
}


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError):
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    if isinstance(exc, NotAuthorized):
        logger.info("403 %s %s: %s", request.method, request.url.path, exc.reason)
    return JSONResponse({"detail": exc.detail}, status_code=status_code)


@app.exception_handler(MalformedAuthorizationRequest)
async def malformed_authorization_handler(request: Request, exc: MalformedAuthorizationRequest):
    logger.error("Malformed authorization request on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse({"detail": str(exc)}, status_code=422)


# ---------------------------------------------------------------------------
# Cross-cutting endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/users/me")
def get_me(ctx: RequestContext = Depends(get_request_context)):
    return {
        **schemas.User.model_validate(ctx.user).model_dump(mode="json"),
        "memberships": [
            {"organization_id": str(entry.organization_id), "role": entry.role.value}
            for entry in sorted(ctx.snapshot.entries, key=lambda e: str(e.organization_id))
        ],
    }


app.include_router(orgs_router)
app.include_router(memberships_router)
app.include_router(topics_router)
app.include_router(events_router)
app.include_router(audits_router)
