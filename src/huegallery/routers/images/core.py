"""Core image endpoints: list and detail."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from huegallery.dependencies import get_listing_service
from huegallery.listing import ListingError, ListingService
from huegallery.query_codec import decode

# Sub-router with no prefix/tags (inherits from parent)
router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/images", response_model=dict, operation_id="list_images")
def list_images(
    request: Request,
    service: ListingService = Depends(get_listing_service),
):
    """List images matching the filter, sort and page encoded in the query string.

    Recognised parameters: ``page``, ``pageSize``, ``sortKey``, ``sortOrder``,
    ``artist``, ``postId``, ``l|c|h|percentage_min|max`` and
    ``<metric>_min``/``<metric>_max`` for every metric of ``/api/v1/metrics``.
    Malformed values fall back to their defaults instead of failing.
    """
    filters = decode(request.query_params)
    try:
        result = service.list(filters)
    except ListingError:
        raise HTTPException(status_code=500, detail="Failed to fetch images.")
    return result.to_dict()


@router.get("/images/{image_id}", response_model=dict, operation_id="get_image")
def get_image(
    image_id: int,
    service: ListingService = Depends(get_listing_service),
):
    """Get one image with its metrics, dominant color swatches and histogram."""
    try:
        detail = service.get_image(image_id)
    except ListingError:
        raise HTTPException(status_code=500, detail="Failed to fetch image.")
    if detail is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return detail
