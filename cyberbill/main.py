# cyberbill/main.py
"""
CyberBill - Billing & Inventory API Entry Point
"""
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import uvicorn
from contextlib import asynccontextmanager

from .api.v1 import api_router
from .config.database import check_database_health, cleanup_database, init_database
from .config.logging import get_logger, setup_logging
from .config.settings import get_settings
from .core.exceptions import BaseCustomException, custom_exception_handler
from .core.middleware import LoggingMiddleware, RequestIDMiddleware

settings = get_settings()

setup_logging(settings)
logger = get_logger("cyberbill")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting {settings.APP_NAME} {settings.VERSION}...")
    init_database()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    cleanup_database()


# Create FastAPI application
app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Billing, inventory and customer ledger for small retail shops",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id", "Content-Disposition"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

# Add exception handlers
app.add_exception_handler(BaseCustomException, custom_exception_handler)

# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.VERSION,
        "status": "operational"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    database_ok = check_database_health()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "up" if database_ok else "down",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION
    }


if __name__ == "__main__":
    uvicorn.run(
        "cyberbill.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else 4
    )
