"""
Card Service - one AI-generated weather card per city per UTC day.

Flow for get_or_create_card(city):
1. Derive the cache key (date partition + prompt version + city slug)
2. Serve the stored card when the key already exists
3. Otherwise resolve the architecture profile (fallback on failure),
   generate the card image, store it and serve it
"""

import asyncio
import base64
import binascii
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from citycard.config import settings
from citycard.exceptions import (
    AnalysisFailure,
    InvalidInput,
    MalformedUpstreamResponse,
    UpstreamUnavailable,
)
from citycard.models.card import (
    CacheKey,
    CardDescription,
    CityArchitectureProfile,
    GeneratedCard,
)
from citycard.services.architecture_service import (
    ArchitectureService,
    fallback_profile,
    try_parse_json,
)
from citycard.services.card_key import build_cache_key, public_url
from citycard.services.gemini_service import GeminiService, first_candidate_parts
from citycard.services.lease_service import NullLease
from citycard.services.storage_service import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/webp"

CARD_STYLE_RULES = """Image style:
Present a clear, 45° top-down view of a vertical (9:16) isometric miniature 3D scene, highlighting iconic landmarks centered in the composition to showcase precise and delicate modeling.
The scene features soft, refined textures with realistic PBR materials and gentle, lifelike lighting and shadow effects.
Weather elements are creatively integrated into the urban architecture, establishing a dynamic interaction between the city's landscape and atmospheric conditions, creating an immersive but restrained weather ambiance.
Use a clean, unified composition with minimalistic aesthetics and a soft, solid-colored background that highlights the main content.
The overall visual style should feel modern, calm, and semi-realistic, avoiding exaggerated cartoon proportions or playful styling.

Text header layout:
Text and weather information should be placed near the top center of the canvas, forming a clearly separated, well-balanced header area with sufficient vertical spacing from the 3D city scene below to prevent visual overlap.
The header is divided horizontally into two parts:
- Left part: a weather emoji. Slightly larger than a single text line, its total height matches the full height of the three-line text group on the right. Prominent but not overpowering.
- Right part: a vertically stacked three-line text group:
  - Top line: city name (largest text size).
  - Middle line: daily temperature range (medium text size, lowest to highest, in ℃).
  - Bottom line: date (smallest text size).
A very subtle, extremely light and thin vertical divider line may be placed between the emoji and the text group, serving only as a gentle visual separator.
Maintain comfortable horizontal spacing between the emoji, divider, and text group. The entire header block should appear centered, aligned, and floating cleanly above the scene, with no background panel.
All text must be in the city's native language."""

CARD_DESCRIPTION_RULES = """After generating the image, output ONLY the following JSON as text (no markdown fences, no extra text):
{"city_slug":"<lowercase-romanized-no-spaces>","resolved_name":"<city name on card>","condition":"<weather in native lang>","icon":"<emoji>","temp_min":<int>,"temp_max":<int>,"current_temp":<int>}

city_slug examples: 杭州→hangzhou, 东京→tokyo, 巴黎→paris, New York→newyork, São Paulo→saopaulo"""


def _bullets(items) -> str:
    return "; ".join(items)


def build_card_prompt(city: str, profile: Optional[CityArchitectureProfile] = None) -> str:
    """Single-turn instruction for the image model."""
    sections = [
        f'You have access to Google Search. Search for today\'s real-time weather in "{city}", '
        "then generate a weather card image."
    ]

    if profile is not None:
        sections.append(
            "City architecture reference (use it to keep the scene faithful to the real city):\n"
            f"- Name: {profile.native_name} ({profile.english_name})\n"
            f"- Skyline: {profile.skyline}\n"
            f"- Landmarks: {_bullets(profile.landmarks)}\n"
            f"- Architectural styles: {_bullets(profile.styles)}\n"
            f"- Materials: {_bullets(profile.materials)}\n"
            f"- Color palette: {_bullets(profile.palette)}\n"
            f"- Street pattern: {profile.street_pattern}\n"
            f"- Weather cues: {_bullets(profile.weather_cues)}\n"
            f"- Avoid: {_bullets(profile.avoid)}"
        )

    sections.append(CARD_STYLE_RULES)
    sections.append(CARD_DESCRIPTION_RULES)
    return "\n\n".join(sections)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(round(value))
    return None


def parse_card_description(text: str) -> Optional[CardDescription]:
    """Parse the trailing JSON summary the model may add next to the image."""
    raw = try_parse_json(text)
    if raw is None:
        return None

    def _text(name: str) -> Optional[str]:
        value = raw.get(name)
        return value.strip() if isinstance(value, str) and value.strip() else None

    return CardDescription(
        city_slug=_text("city_slug"),
        resolved_name=_text("resolved_name"),
        condition=_text("condition"),
        icon=_text("icon"),
        temp_min=_as_int(raw.get("temp_min")),
        temp_max=_as_int(raw.get("temp_max")),
        current_temp=_as_int(raw.get("current_temp")),
    )


def extract_inline_image(response: Dict[str, Any]) -> GeneratedCard:
    """
    Pull the card image out of a generateContent response.

    Requires a first candidate with content parts, a part carrying
    inlineData, and non-empty base64 data.
    """
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise MalformedUpstreamResponse("No candidate in model response")

    parts = first_candidate_parts(response)
    if not parts:
        raise MalformedUpstreamResponse("No content generated")

    image_part = next(
        (part for part in parts if isinstance(part, dict) and part.get("inlineData")),
        None,
    )
    if image_part is None:
        raise MalformedUpstreamResponse("No image generated")

    inline_data = image_part["inlineData"]
    encoded = inline_data.get("data") if isinstance(inline_data, dict) else None
    if not encoded:
        raise MalformedUpstreamResponse("Generated image has no binary data")

    try:
        data = base64.b64decode(encoded)
    except (binascii.Error, ValueError, TypeError) as e:
        raise MalformedUpstreamResponse(f"Generated image is not valid base64: {e}")
    if not data:
        raise MalformedUpstreamResponse("Generated image has no binary data")

    text = "".join(
        part["text"] for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought")
    )

    return GeneratedCard(
        data=data,
        content_type=inline_data.get("mimeType") or DEFAULT_CONTENT_TYPE,
        description=parse_card_description(text) if text else None,
    )


class CardService:
    """Idempotent weather card generator."""

    def __init__(
        self,
        store: BlobStore,
        gateway: GeminiService,
        analyzer: Optional[ArchitectureService] = None,
        lease=None,
        prompt_version: Optional[str] = None,
        versioned_keys: Optional[bool] = None,
        profile_enrichment: Optional[bool] = None,
        cdn_base_url: Optional[str] = None,
        lease_wait_seconds: Optional[float] = None,
        lease_poll_seconds: Optional[float] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.analyzer = analyzer or ArchitectureService(gateway)
        self.lease = lease or NullLease()
        self.prompt_version = prompt_version or settings.card_prompt_version
        self.versioned_keys = settings.card_versioned_keys if versioned_keys is None else versioned_keys
        self.profile_enrichment = (
            settings.card_profile_enrichment if profile_enrichment is None else profile_enrichment
        )
        self.cdn_base_url = cdn_base_url or settings.card_cdn_base_url or store.public_base_url
        if not self.cdn_base_url:
            raise UpstreamUnavailable("No public URL for stored cards: set CARD_CDN_BASE_URL")
        self.lease_wait_seconds = (
            settings.card_lease_wait_seconds if lease_wait_seconds is None else lease_wait_seconds
        )
        self.lease_poll_seconds = (
            settings.card_lease_poll_seconds if lease_poll_seconds is None else lease_poll_seconds
        )

    def cache_key(self, city: str, moment: Optional[datetime] = None) -> CacheKey:
        version = self.prompt_version if self.versioned_keys else None
        return build_cache_key(city, prompt_version=version, moment=moment)

    def url_for(self, key: CacheKey) -> str:
        return public_url(self.cdn_base_url, key)

    async def get_or_create_card(self, city: str, moment: Optional[datetime] = None) -> str:
        """
        Return the public URL of today's card for `city`, generating it at most once.
        """
        city = (city or "").strip()
        if not city:
            raise InvalidInput("City parameter is required")

        key = self.cache_key(city, moment)
        image_url = self.url_for(key)

        if await self.store.head(key.object_key):
            logger.info(f"Card cache hit: {key}", extra={"extra": {"cache_key": str(key)}})
            return image_url

        logger.info(f"Card cache miss: {key}", extra={"extra": {"cache_key": str(key)}})

        token = await self.lease.acquire(key.object_key)
        if token is None:
            if await self._wait_for_card(key):
                logger.info(f"Card produced by concurrent request: {key}")
                return image_url
            logger.warning(
                f"Lease wait expired for {key}, generating anyway",
                extra={"extra": {"cache_key": str(key)}},
            )

        try:
            await self._generate_and_store(city, key)
        finally:
            if token is not None:
                await self.lease.release(key.object_key, token)

        return image_url

    async def resolve_profile(self, city: str) -> CityArchitectureProfile:
        """Architecture profile for `city`, falling back on any analysis failure."""
        try:
            return await self.analyzer.analyze(city)
        except AnalysisFailure as e:
            logger.warning(f"Architecture analysis failed for {city} ({type(e).__name__}): {e}")
            return fallback_profile(city)

    async def _generate_and_store(self, city: str, key: CacheKey) -> None:
        profile = await self.resolve_profile(city) if self.profile_enrichment else None
        prompt = build_card_prompt(city, profile)

        started = time.monotonic()
        response = await self.gateway.generate_image(prompt)
        card = extract_inline_image(response)
        logger.info(
            f"Generated card for {key} in {time.monotonic() - started:.1f}s "
            f"({card.size} bytes, {card.content_type})"
        )
        if card.description is not None:
            logger.debug(f"Card description for {key}: {card.description}")

        await self.store.put(key.object_key, card.data, card.content_type)

    async def _wait_for_card(self, key: CacheKey) -> bool:
        """Poll the store while another request holds the lease."""
        deadline = time.monotonic() + self.lease_wait_seconds
        while time.monotonic() < deadline:
            await asyncio.sleep(self.lease_poll_seconds)
            if await self.store.head(key.object_key):
                return True
        return False
