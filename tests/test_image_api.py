"""
Tests for the /api/image endpoint.
"""

import pytest
from fastapi.testclient import TestClient

from citycard.api.deps import get_card_service, get_store
from citycard.exceptions import UpstreamUnavailable
from citycard.main import app
from tests.conftest import CDN_BASE, IMAGE_BYTES, text_response


@pytest.fixture
def client(card_service):
    app.dependency_overrides[get_card_service] = lambda: card_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _today_url(card_service, city):
    return card_service.url_for(card_service.cache_key(city))


class TestImageEndpoint:
    """End-to-end tests with faked store and model gateway."""

    def test_missing_city(self, client):
        response = client.get("/api/image")
        assert response.status_code == 400
        assert response.json() == {"error": "City parameter is required"}

    def test_blank_city(self, client, gateway):
        response = client.get("/api/image", params={"city": "   "})
        assert response.status_code == 400
        gateway.generate_image.assert_not_called()

    def test_existing_card_served_without_model_call(self, client, card_service, store, gateway):
        store.head.return_value = True

        response = client.get("/api/image", params={"city": "Paris"})

        assert response.status_code == 200
        assert response.json() == {"imageUrl": _today_url(card_service, "Paris")}
        assert response.json()["imageUrl"].startswith(CDN_BASE + "/")
        gateway.generate_text.assert_not_called()
        gateway.generate_image.assert_not_called()

    def test_new_card_generated_and_stored(self, client, card_service, store, gateway):
        response = client.get("/api/image", params={"city": "Paris"})

        assert response.status_code == 200
        assert response.json() == {"imageUrl": _today_url(card_service, "Paris")}
        key = card_service.cache_key("Paris").object_key
        store.put.assert_awaited_once_with(key, IMAGE_BYTES, "image/png")

    def test_missing_inline_data_is_500(self, client, store, gateway):
        gateway.generate_image.return_value = text_response("no image today")

        response = client.get("/api/image", params={"city": "Paris"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate image"}
        store.put.assert_not_called()

    def test_store_failure_is_500(self, client, store):
        store.head.side_effect = RuntimeError("bucket unreachable")

        response = client.get("/api/image", params={"city": "Paris"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate image"}

    def test_non_ascii_city_url_encoded(self, client, store):
        store.head.return_value = True

        response = client.get("/api/image", params={"city": "杭州"})

        assert response.status_code == 200
        assert response.json()["imageUrl"].endswith("/%E6%9D%AD%E5%B7%9E.webp")


def test_unconfigured_store_is_500():
    def _unconfigured():
        raise UpstreamUnavailable("S3_BUCKET is not configured")

    app.dependency_overrides[get_store] = _unconfigured
    try:
        response = TestClient(app).get("/api/image", params={"city": "Paris"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "error" in response.json()


def test_health():
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
