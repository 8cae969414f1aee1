"""HueGallery API routers package."""
