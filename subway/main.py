"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import lines, stations
from .config import settings
from .database import init_db
from .logging_utils import configure_logging, disable_centralized_logging, enable_centralized_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    configure_logging()
    await init_db()
    await enable_centralized_logging("api")
    yield
    await disable_centralized_logging()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with one message per failing field."""
    errors = exc.errors()
    logger.warning("Validation error: %s %s - %s", request.method, request.url.path, errors)

    fields = {}
    for error in errors:
        field = str(error["loc"][-1]) if error["loc"] else "request"
        fields.setdefault(field, error["msg"])
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=fields)


# Include routers
app.include_router(stations.router, prefix="/stations", tags=["Stations"])
app.include_router(lines.router, prefix="/lines", tags=["Lines"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "subway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
