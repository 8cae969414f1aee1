"""Distinct artist names for the artist filter."""

from fastapi import APIRouter, Depends, HTTPException

from huegallery.dependencies import get_listing_service
from huegallery.listing import ListingError, ListingService

router = APIRouter(
    prefix="/api/v1",
    tags=["artists"]
)


@router.get("/artists", operation_id="list_artists")
def list_artists(service: ListingService = Depends(get_listing_service)):
    """Sorted distinct author names of posts that own images."""
    try:
        artists = service.list_artists()
    except ListingError:
        raise HTTPException(status_code=500, detail="Failed to fetch artists.")
    return {"artists": artists}
