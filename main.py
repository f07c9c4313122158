import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import PortalError
from app.core.logging_config import setup_logging
from app.core.sessions import build_session_manager, prune_sessions_periodically
from app.api.endpoints import auth, contractor, health, team, two_factor, verification

# Configure logging (JSON in production)
setup_logging(settings.LOG_LEVEL, json_logs=settings.is_production)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Startup fails (RuntimeError) in production when the session store is unreachable.
    """
    # Startup
    logger.info(f"Starting up {settings.PROJECT_NAME} ({settings.ENVIRONMENT})...")
    init_db()

    app.state.session_manager = build_session_manager()
    pruner = asyncio.create_task(
        prune_sessions_periodically(app.state.session_manager, settings.SESSION_PRUNE_INTERVAL_SECONDS)
    )
    logger.info("Session store ready")

    yield

    # Shutdown
    pruner.cancel()
    logger.info(f"Shutting down {settings.PROJECT_NAME}...")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Accounts, sessions and permissions for the SEMI Program Portal",
    lifespan=lifespan
)

# Configure CORS (credentials are required for the session cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report the first failing rule as a 400, matching the other validation errors."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        original = (first.get("ctx") or {}).get("error")
        if isinstance(original, Exception):
            message = str(original)
        else:
            field = ".".join(str(part) for part in first.get("loc", ())[1:])
            message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers
app.include_router(health.router)
app.include_router(auth.router, prefix=settings.API_V1_STR)
app.include_router(verification.router, prefix=settings.API_V1_STR)
app.include_router(two_factor.router, prefix=settings.API_V1_STR)
app.include_router(team.router, prefix=settings.API_V1_STR)
app.include_router(contractor.router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "healthy"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
        log_level="info"
    )
