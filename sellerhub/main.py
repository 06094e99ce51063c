"""Main FastAPI application with all middleware"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from contextlib import asynccontextmanager
import logging

from sellerhub.core.config import settings
from sellerhub.core.database import init_db, close_db
from sellerhub.core.exceptions import (
    SellerHubException,
    PartialResolutionError,
    StorageUnavailableError,
    sellerhub_exception_handler,
)
from sellerhub.middleware.rate_limit import limiter, custom_rate_limit_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting up {settings.APP_NAME}...")
    await init_db()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Seller metrics resolution and order overlay API",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)

# Application errors
app.add_exception_handler(SellerHubException, sellerhub_exception_handler)

@app.exception_handler(PartialResolutionError)
async def partial_resolution_handler(request: Request, exc: PartialResolutionError):
    """Strict resolution failed for some timeframes; return what did resolve"""
    return JSONResponse(
        status_code=503,
        content={
            "error": True,
            "error_code": "PARTIAL_RESOLUTION",
            "message": str(exc),
            "failed": {getattr(t, "value", t): msg for t, msg in exc.failed.items()},
            "timeframes": jsonable_encoder(
                {getattr(t, "value", t): view for t, view in exc.views.items()}
            ),
        }
    )

@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error(f"Storage unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "error": True,
            "error_code": "STORAGE_UNAVAILABLE",
            "message": str(exc)
        }
    )

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS
)

# Include routers
from sellerhub.api.v1 import api_router
app.include_router(api_router, prefix="/api/v1")

# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/api/docs",
        "health": "/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sellerhub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS
    )
