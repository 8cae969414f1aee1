"""Shared dependencies for FastAPI endpoints."""

from fastapi import Depends
from sqlalchemy.orm import Session

from huegallery.database import get_db
from huegallery.listing import ListingService


def get_listing_service(db: Session = Depends(get_db)) -> ListingService:
    """Listing service bound to the request's database session."""
    return ListingService(db)
