"""
Qappio API - Main application entry point.

Backend for the Qappio gamified marketing platform.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.database import Database
from app.levels.views import router as levels_router
from app.tasks.views import router as tasks_router
from app.market.views import router as market_router
from app.brands.views import router as brands_router

settings = get_settings()
API_PREFIX = "/api"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    await Database.connect()
    yield
    # Shutdown
    await Database.disconnect()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
## Qappio API

Brands post tasks, users complete them for QP, and QP is spent in the market.

### Features

- 🎯 **Tasks**: Brand-sponsored activities with deadlines and participant limits
- 🏅 **Levels**: Point tiers with benefits and market access
- 🛍️ **Market**: Items redeemable for QP, with discounts and stock tracking
- 🏢 **Brands**: Directory of partner brands

    """,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url=f"{API_PREFIX}/docs",
    redoc_url=f"{API_PREFIX}/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
routers = [
    tasks_router,
    levels_router,
    market_router,
    brands_router,
]

for router in routers:
    app.include_router(router, prefix=API_PREFIX)


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "tasks": f"{API_PREFIX}/tasks",
            "levels": f"{API_PREFIX}/levels",
            "market": f"{API_PREFIX}/market",
            "brands": f"{API_PREFIX}/brands",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if Database.client else "disconnected",
        "version": settings.APP_VERSION,
    }
