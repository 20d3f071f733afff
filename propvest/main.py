"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from propvest.config import get_settings
from propvest.api import router as api_router
from propvest.calculations.errors import (
    InvestmentEngineError,
    MissingRateConfigurationError,
)

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Property investment returns and withdrawal calculation service",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(InvestmentEngineError)
async def engine_error_handler(request: Request, exc: InvestmentEngineError):
    """Translate calculation engine errors into HTTP responses."""
    if isinstance(exc, MissingRateConfigurationError):
        logger.error("Rate configuration missing for %s: %s", request.url.path, exc)
        status_code = 500
    else:
        logger.warning("Rejected %s: %s", request.url.path, exc)
        status_code = 400
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}
