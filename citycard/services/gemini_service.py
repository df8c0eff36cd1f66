"""
Gemini Service - generateContent calls for profile analysis and card images.

Talks to the Gemini REST API directly, or through a Cloudflare AI Gateway when
MODEL_GATEWAY_URL points at one
(https://gateway.ai.cloudflare.com/v1/{account}/{gateway}/google-ai-studio).
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from citycard.config import settings
from citycard.exceptions import (
    MalformedUpstreamResponse,
    UpstreamTransportError,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

GENERATE_PATH = "v1beta/models/{model}:generateContent"


def build_request(
    prompt: str,
    use_search: bool = True,
    response_modalities: Optional[List[str]] = None,
    aspect_ratio: Optional[str] = None,
    image_size: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a single-turn generateContent body."""
    generation_config: Dict[str, Any] = {
        "thinkingConfig": {"includeThoughts": False},
    }
    if response_modalities:
        generation_config["responseModalities"] = response_modalities
    if aspect_ratio or image_size:
        image_config = {}
        if aspect_ratio:
            image_config["aspectRatio"] = aspect_ratio
        if image_size:
            image_config["imageSize"] = image_size
        generation_config["imageConfig"] = image_config

    body: Dict[str, Any] = {
        "contents": [
            {
                "role": "user",
                "parts": [{"text": prompt}],
            }
        ],
        "generationConfig": generation_config,
    }
    if use_search:
        body["tools"] = [{"googleSearch": {}}]
    return body


def first_candidate_parts(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Content parts of the first candidate, empty when absent."""
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return []
    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    return parts if isinstance(parts, list) else []


def collect_text(response: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate, skipping thoughts."""
    texts = []
    for part in first_candidate_parts(response):
        if not isinstance(part, dict) or part.get("thought"):
            continue
        text = part.get("text")
        if isinstance(text, str):
            texts.append(text)
    return "".join(texts)


class GeminiService:
    """Client for the text and image generateContent endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        gateway_token: Optional[str] = None,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.model_gateway_url).rstrip("/")
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.gateway_token = settings.ai_gateway_token if gateway_token is None else gateway_token
        self.text_model = text_model or settings.text_model
        self.image_model = image_model or settings.image_model
        self.timeout = timeout or settings.model_timeout_seconds
        self._transport = transport

    async def generate_text(self, prompt: str, use_search: bool = True) -> Dict[str, Any]:
        """Text-only generation (architecture profile analysis)."""
        body = build_request(prompt, use_search=use_search)
        return await self._generate(self.text_model, body)

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: Optional[str] = None,
        image_size: Optional[str] = None,
        use_search: bool = True,
    ) -> Dict[str, Any]:
        """Image-only generation (the weather card)."""
        body = build_request(
            prompt,
            use_search=use_search,
            response_modalities=["IMAGE"],
            aspect_ratio=aspect_ratio or settings.card_aspect_ratio,
            image_size=image_size or settings.card_image_size,
        )
        return await self._generate(self.image_model, body)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key
        if self.gateway_token:
            headers["cf-aig-authorization"] = f"Bearer {self.gateway_token}"
        return headers

    async def _generate(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key and not self.gateway_token:
            raise UpstreamUnavailable("Model gateway credentials are not configured")

        url = f"{self.base_url}/{GENERATE_PATH.format(model=model)}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=body, headers=self._headers())
        except httpx.TimeoutException:
            logger.error(f"Model gateway timeout for {model}")
            raise UpstreamTransportError("model gateway", body="timeout")
        except httpx.HTTPError as e:
            logger.error(f"Model gateway network error for {model}: {e}")
            raise UpstreamTransportError("model gateway", body=str(e))

        if not response.is_success:
            logger.error(f"Model gateway HTTP error: {response.status_code} {response.text}")
            raise UpstreamTransportError(
                "model gateway",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            raise MalformedUpstreamResponse("Model gateway response is not JSON")

        if not isinstance(data, dict):
            raise MalformedUpstreamResponse("Model gateway response is not a JSON object")
        return data
