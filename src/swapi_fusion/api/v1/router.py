"""API v1 main router.

Aggregates all v1 API routers into a single router for inclusion in the app.
"""

from fastapi import APIRouter

from swapi_fusion.api.v1.fusion import router as fusion_router
from swapi_fusion.api.v1.history import router as history_router
from swapi_fusion.api.v1.store import router as store_router

router = APIRouter()

# Include sub-routers
router.include_router(fusion_router, tags=["Fusion"])
router.include_router(store_router, tags=["Storage"])
router.include_router(history_router, tags=["History"])
