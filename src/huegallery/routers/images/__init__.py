"""Aggregated images router combining all sub-routers."""

from fastapi import APIRouter
from .core import router as core_router

# Main router with shared prefix and tags
router = APIRouter(
    prefix="/api/v1",
    tags=["images"]
)

router.include_router(core_router)
