"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from huegallery.database import SessionLocal
from huegallery.settings import settings

# Import all routers
from huegallery.routers import artists, config, images

app = FastAPI(
    title="HueGallery",
    description="Photo gallery browsing by artist, visual metrics and dominant color",
    version="0.1.0"
)
logger = logging.getLogger(__name__)

# Add CORS middleware
_allowed_origins = [settings.app_url]
if settings.is_development:
    # Allow any localhost port during local development
    _allowed_origins += [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Register all routers
app.include_router(images.router)
app.include_router(artists.router)
app.include_router(config.router)


# Health check endpoint
@app.get("/health")
def health_check():
    """Health check endpoint with DB connectivity verification."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except SQLAlchemyError as exc:
        logger.warning("Health check failed: %s", exc)
        raise HTTPException(status_code=503, detail="Database unavailable")
    finally:
        db.close()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "huegallery.api:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug
    )
