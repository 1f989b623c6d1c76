"""
RoadBlock Alerts - FastAPI Application Entry Point

Community road-incident reporting: users report roadblocks and accidents,
others confirm or dismiss them, and incidents switch off after enough
dismissals. Clients post live positions to receive proximity alerts.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roadblock.core.errors import RoadblockError
from roadblock.core.settings import settings
from roadblock.routes import alerts, health, incidents, user_settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Community road incident reporting with vote-based verification",
    debug=settings.DEBUG
)


@app.exception_handler(RoadblockError)
async def roadblock_exception_handler(request: Request, exc: RoadblockError):
    """Domain errors raised outside a route's own try/except (e.g. auth dependencies)."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema validation failures are client errors (400)."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": exc.errors()})
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Internal server error: {str(exc)}"}
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Resolve the storage backend so configuration errors show up at boot."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    from roadblock.services.storage import get_repository
    try:
        get_repository()
    except Exception as e:
        logger.warning(f"Storage initialization failed: {e}")
        logger.warning("The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(incidents.router)
app.include_router(user_settings.router)
app.include_router(alerts.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "incidents": f"{settings.API_PREFIX}/incidents"
    }
