"""
API routes for the investment platform.
"""

from fastapi import APIRouter

from propvest.api import calculations, investments, properties, settings

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(investments.router, prefix="/investments", tags=["investments"])
router.include_router(properties.router, prefix="/properties", tags=["properties"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
