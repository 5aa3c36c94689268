"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from okr_service.config import settings
from okr_service.database import database
from okr_service.models.errors import ExternalCommitError
from okr_service.routers import auth, objectives
from okr_service.utils.logging_config import configure_logging


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    configure_logging(settings.log_level)
    await database.connect()
    yield
    # Shutdown
    await database.disconnect()


app = FastAPI(
    title="OKR Service API",
    description="Validation and lifecycle engine for marketing OKR objectives",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(objectives.router)


@app.exception_handler(ExternalCommitError)
async def external_commit_error_handler(request: Request, exc: ExternalCommitError):
    """Store failures surface as 502 after the cache has been rolled back."""
    logger.error("Commit failed path=%s cause=%s", request.url.path, exc.failure.cause)
    return JSONResponse(
        status_code=502,
        content={"detail": exc.failure.model_dump(mode="json") | {"message": exc.failure.message}},
    )


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "OKR Service API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
