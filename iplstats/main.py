"""FastAPI application for the IPL Data Platform."""

import logging
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from iplstats.config import get_settings
from iplstats.dashboard.routes import router as dashboard_router
from iplstats.database import AsyncSessionLocal, close_db, init_db
from iplstats.etl import run_ingestion
from iplstats.routes.core import router as core_router
from iplstats.routes.matches import router as matches_router
from iplstats.routes.players import router as players_router
from iplstats.routes.stats import router as stats_router
from iplstats.routes.teams import router as teams_router
from iplstats.scheduler import start_scheduler, stop_scheduler
from iplstats.security import limiter
from iplstats.telemetry import init_sentry, record_api_error

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking (before FastAPI app creation)
# Only activates if SENTRY_DSN is set in environment
init_sentry()

API_RESOURCES = {"teams", "players", "matches", "stats", "health"}


def _resource(path: str) -> str:
    """Low-cardinality metric label for a request path."""
    parts = path.strip("/").split("/")
    if len(parts) > 1 and parts[0] == "api" and parts[1] in API_RESOURCES:
        return parts[1]
    if parts[0] == "dashboard":
        return "dashboard"
    return "other"


def error_response(request: Request, status_code: int, message: str, headers=None) -> JSONResponse:
    """The single JSON error shape: {"error": <status phrase>, "message": <text>}."""
    record_api_error(_resource(request.url.path), status_code)
    try:
        error = HTTPStatus(status_code).phrase
    except ValueError:
        error = "Error"
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message},
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.API_TITLE} v{settings.API_VERSION}...")
    await init_db()

    if settings.SEED_ON_STARTUP:
        logger.info(f"[STARTUP] Seeding database from {settings.DATA_PATH}")
        async with AsyncSessionLocal() as session:
            report = await run_ingestion(session, settings.DATA_PATH)
        logger.info(f"[STARTUP] Seeding complete: {report.as_dict()['categories']}")

    start_scheduler()
    logger.info("Startup complete. API docs at /api-docs")

    yield

    # Shutdown
    logger.info("Shutting down...")
    stop_scheduler()
    await close_db()


app = FastAPI(
    title=settings.API_TITLE,
    description="Cricket statistics for IPL 2022: teams, players, matches and standings",
    version=settings.API_VERSION,
    docs_url="/api-docs",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == HTTPStatus.NOT_FOUND.phrase:
        # Router-level 404: no route matched
        message = f"Cannot {request.method} {request.url.path}"
    return error_response(request, exc.status_code, str(message), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return error_response(request, 422, "; ".join(problems) or "Invalid request")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(request, 500, "Internal server error")


# Include routers
app.include_router(core_router)
app.include_router(teams_router, prefix="/api")
app.include_router(players_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(stats_router, prefix="/api")
app.include_router(dashboard_router)
