"""
Tests for GeminiService request building and error handling.
"""

import json

import httpx
import pytest

from citycard.exceptions import (
    MalformedUpstreamResponse,
    UpstreamTransportError,
    UpstreamUnavailable,
)
from citycard.services.gemini_service import GeminiService, build_request, collect_text
from tests.conftest import image_response


def _service(handler, **kwargs) -> GeminiService:
    options = dict(
        base_url="https://gateway.example.test/google-ai-studio/",
        api_key="test-key",
        gateway_token="",
        text_model="text-model",
        image_model="image-model",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )
    options.update(kwargs)
    return GeminiService(**options)


class TestBuildRequest:
    """Tests for build_request."""

    def test_text_request(self):
        body = build_request("describe Paris")
        assert body["contents"][0]["parts"] == [{"text": "describe Paris"}]
        assert body["tools"] == [{"googleSearch": {}}]
        assert body["generationConfig"] == {"thinkingConfig": {"includeThoughts": False}}

    def test_image_request(self):
        body = build_request("draw", response_modalities=["IMAGE"], aspect_ratio="1:1", image_size="2K")
        config = body["generationConfig"]
        assert config["responseModalities"] == ["IMAGE"]
        assert config["imageConfig"] == {"aspectRatio": "1:1", "imageSize": "2K"}

    def test_search_disabled(self):
        assert "tools" not in build_request("x", use_search=False)


class TestCollectText:
    """Tests for collect_text."""

    def test_skips_thoughts_and_images(self):
        response = image_response(text="hello ")
        response["candidates"][0]["content"]["parts"].append({"text": "world"})
        response["candidates"][0]["content"]["parts"].insert(0, {"text": "hmm", "thought": True})
        assert collect_text(response) == "hello world"

    def test_empty(self):
        assert collect_text({}) == ""

    def test_candidates_not_a_list(self):
        assert collect_text({"candidates": {"x": 1}}) == ""
        assert collect_text({"candidates": [None]}) == ""


class TestGeminiService:
    """Tests for GeminiService HTTP calls."""

    @pytest.mark.asyncio
    async def test_generate_image_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=image_response())

        service = _service(handler, gateway_token="cf-token")
        data = await service.generate_image("draw Paris", aspect_ratio="1:1", image_size="2K")

        assert "candidates" in data
        assert seen["url"] == (
            "https://gateway.example.test/google-ai-studio/v1beta/models/image-model:generateContent"
        )
        assert seen["headers"]["x-goog-api-key"] == "test-key"
        assert seen["headers"]["cf-aig-authorization"] == "Bearer cf-token"
        assert seen["body"]["generationConfig"]["responseModalities"] == ["IMAGE"]
        assert seen["body"]["tools"] == [{"googleSearch": {}}]

    @pytest.mark.asyncio
    async def test_generate_text_uses_text_model(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(200, json={"candidates": []})

        await _service(handler).generate_text("describe")

        assert seen["path"].endswith("/models/text-model:generateContent")

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_body(self):
        service = _service(lambda request: httpx.Response(429, text="quota exceeded"))

        with pytest.raises(UpstreamTransportError) as exc_info:
            await service.generate_image("draw")

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "quota exceeded"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamTransportError):
            await _service(handler).generate_text("x")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        service = _service(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(MalformedUpstreamResponse):
            await service.generate_text("x")

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        service = _service(lambda request: httpx.Response(200, json={}), api_key="", gateway_token="")

        with pytest.raises(UpstreamUnavailable):
            await service.generate_text("x")
