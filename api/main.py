"""
Miles Sales Engine API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from config import config
from services.access_service import WhitelistCache

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Miles Sales Engine API",
    description="REST API for pricing, recording and collecting airline-miles ticket sales",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Loaded lazily from ALWAYS_ACTIVE_EMAILS on the first access check
app.state.whitelist = WhitelistCache()

# TODO: Restrict origins once the dashboard domain is fixed
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "miles-sales-engine-api"
    }


@app.get("/", tags=["Root"])
def root():
    return {
        "message": "Miles Sales Engine API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import pricing, sales

app.include_router(pricing.router, prefix="/api/v1", tags=["Pricing"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
