"""Tests for the image, artist and config endpoints.

This module tests:
- GET /api/v1/images (list_images)
- GET /api/v1/images/{image_id} (get_image)
- GET /api/v1/artists (list_artists)
- GET /api/v1/metrics (get_metric_config)
- GET /health
"""

import asyncio

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from huegallery.api import app
from huegallery.database import get_db
from huegallery.dependencies import get_listing_service
from huegallery.listing import ListingError, ListingService
from huegallery.routers.config import get_metric_config
from huegallery.routers.images.core import get_image


class _FailingListingService:
    """Stands in for a listing service whose store is down."""

    def list(self, filters):
        raise ListingError("Failed to fetch images.")

    def list_artists(self):
        raise ListingError("Failed to fetch artists.")

    def get_image(self, image_id):
        raise ListingError("Failed to fetch image.")


@pytest.fixture
def client(test_db: Session):
    def _override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client():
    app.dependency_overrides[get_listing_service] = lambda: _FailingListingService()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestListImages:
    """Tests for GET /api/v1/images endpoint."""

    def test_list_all(self, client: TestClient, sample_gallery):
        response = client.get("/api/v1/images")
        assert response.status_code == 200
        data = response.json()
        assert data["totalCount"] == 5
        assert data["page"] == 1
        assert data["pageSize"] == 50
        assert [item["id"] for item in data["items"]] == [image.id for image in reversed(sample_gallery)]

    def test_hue_wraparound(self, client: TestClient, sample_gallery):
        response = client.get("/api/v1/images", params={"h_min": 350, "h_max": 10})
        data = response.json()
        assert sorted(item["id"] for item in data["items"]) == [sample_gallery[0].id, sample_gallery[1].id]
        assert data["totalCount"] == 2

    def test_sort_and_page(self, client: TestClient, sample_gallery):
        response = client.get(
            "/api/v1/images",
            params={"sortKey": "Luminance;mean_luminance", "sortOrder": "asc", "page": 2, "pageSize": 2},
        )
        data = response.json()
        assert [item["id"] for item in data["items"]] == [sample_gallery[2].id, sample_gallery[3].id]
        assert data["page"] == 2
        assert data["pageSize"] == 2

    def test_malformed_parameters_do_not_fail(self, client: TestClient, sample_gallery):
        response = client.get("/api/v1/images?page=abc&pageSize=zero&variance_min=lots&foo_min=5")
        assert response.status_code == 200
        assert response.json()["totalCount"] == 5

    def test_page_past_end(self, client: TestClient, sample_gallery):
        data = client.get("/api/v1/images", params={"page": 1000}).json()
        assert data["items"] == []
        assert data["totalCount"] == 5

    def test_query_is_echoed(self, client: TestClient, sample_gallery):
        data = client.get("/api/v1/images?artist=ana&page=1").json()
        assert data["query"] == "page=1&pageSize=50&sortKey=post%3Bpost_date&sortOrder=desc&artist=ana"

    def test_store_failure(self, failing_client: TestClient):
        response = failing_client.get("/api/v1/images")
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch images."


class TestGetImage:
    """Tests for GET /api/v1/images/{image_id} endpoint."""

    def test_get_image(self, client: TestClient, sample_gallery):
        response = client.get(f"/api/v1/images/{sample_gallery[2].id}")
        assert response.status_code == 200
        data = response.json()
        assert data["post"]["username"] == "ben"
        assert data["swatches"][0]["h"] == 180

    def test_not_found(self, test_db: Session, sample_gallery):
        with pytest.raises(HTTPException) as exc_info:
            get_image(9999, service=ListingService(test_db))

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Image not found"

    def test_store_failure(self, failing_client: TestClient):
        assert failing_client.get("/api/v1/images/1").status_code == 500


class TestArtists:
    """Tests for GET /api/v1/artists endpoint."""

    def test_list_artists(self, client: TestClient, sample_gallery):
        assert client.get("/api/v1/artists").json() == {"artists": ["ana", "ben", "cara"]}

    def test_store_failure(self, failing_client: TestClient):
        response = failing_client.get("/api/v1/artists")
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch artists."


class TestMetricConfig:
    """Tests for GET /api/v1/metrics endpoint."""

    def test_metric_config(self):
        config = asyncio.run(get_metric_config())
        relations = {group.relation: group for group in config.relations}
        assert list(relations) == ["Luminance", "Saturation", "GLCM", "Laplacian"]
        variance = relations["Laplacian"].metrics[0]
        assert variance.name == "variance"
        assert variance.label == "Laplacian Variance"
        assert (variance.min, variance.max) == (0, 2500)
        assert variance.sort_key == "Laplacian;variance"
        assert config.default_sort_key == "post;post_date"
        assert "post;username" in config.post_sort_keys

    def test_metric_config_endpoint(self, client: TestClient):
        response = client.get("/api/v1/metrics")
        assert response.status_code == 200
        data = response.json()
        assert data["color_range"]["h"] == {"min": 0, "max": 360}


class TestHealth:
    """Tests for GET /health endpoint."""

    def test_healthy(self, test_engine, monkeypatch):
        monkeypatch.setattr("huegallery.api.SessionLocal", sessionmaker(bind=test_engine))
        response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_database_unavailable(self, monkeypatch):
        engine = create_engine("sqlite:////nonexistent-dir/gallery.db")
        monkeypatch.setattr("huegallery.api.SessionLocal", sessionmaker(bind=engine))
        response = TestClient(app).get("/health")
        assert response.status_code == 503
        assert response.json()["detail"] == "Database unavailable"
