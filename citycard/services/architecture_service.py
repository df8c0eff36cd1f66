"""
Architecture Service - structured architectural facts about a city.

The profile grounds the card image in the city's real skyline. Analysis is
best effort: every field has a deterministic fallback so the generated
prompt is never missing a section.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from citycard.exceptions import (
    AnalysisEmptyResponse,
    AnalysisInvalidJson,
    AnalysisTransportError,
    CityCardError,
)
from citycard.models.card import CityArchitectureProfile
from citycard.services.gemini_service import GeminiService, collect_text

logger = logging.getLogger(__name__)

MAX_LIST_ITEMS = 8

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)

DEFAULT_LISTS: Dict[str, List[str]] = {
    "landmarks": ["the most recognizable civic landmark", "a historic central district"],
    "styles": ["the dominant local vernacular style", "contemporary mid-rise architecture"],
    "materials": ["local stone", "brick", "glass", "concrete"],
    "palette": ["soft neutral tones", "muted earth colors", "gentle sky blue"],
    "weather_cues": ["sky color matching the current conditions", "light and shadow consistent with the weather"],
    "avoid": ["generic skyscrapers unrelated to the city", "landmarks from other cities", "cartoon proportions"],
}

ANALYSIS_PROMPT = """You have access to Google Search. Research the real architecture of the city "{city}".

Return ONLY a JSON object (no markdown fences, no extra text) with exactly these keys:
{{
  "native_name": "<city name in its native language>",
  "english_name": "<city name in English>",
  "skyline": "<one sentence describing the skyline silhouette>",
  "landmarks": ["<real landmark>", "..."],
  "styles": ["<architectural style>", "..."],
  "materials": ["<building material>", "..."],
  "palette": ["<dominant color>", "..."],
  "street_pattern": "<one sentence describing the street layout>",
  "weather_cues": ["<how local weather typically shows on buildings and streets>", "..."],
  "avoid": ["<visual cliché or wrong-city element to avoid>", "..."]
}}

Use at most 8 items per list. Only list landmarks that really exist in {city}."""


def fallback_profile(city: str) -> CityArchitectureProfile:
    """Deterministic profile used when analysis is unavailable."""
    name = city.strip() or "the city"
    return CityArchitectureProfile(
        native_name=name,
        english_name=name,
        skyline=f"the characteristic skyline of {name}",
        landmarks=list(DEFAULT_LISTS["landmarks"]),
        styles=list(DEFAULT_LISTS["styles"]),
        materials=list(DEFAULT_LISTS["materials"]),
        palette=list(DEFAULT_LISTS["palette"]),
        street_pattern=f"the typical street layout of {name}",
        weather_cues=list(DEFAULT_LISTS["weather_cues"]),
        avoid=list(DEFAULT_LISTS["avoid"]),
    )


def try_parse_json(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull a JSON object out of free-form model output.

    Strips surrounding code fences, then parses the span between the first
    `{` and the last `}`. Returns None when no object can be parsed.
    """
    if not text:
        return None

    candidate = _CODE_FENCE.sub("", text.strip())
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start < 0 or end <= start:
        return None

    try:
        value = json.loads(candidate[start:end + 1])
    except json.JSONDecodeError:
        return None

    return value if isinstance(value, dict) else None


def _scalar(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _string_list(value: Any, default: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if not items:
        return list(default)
    return items[:MAX_LIST_ITEMS]


def normalize_profile(raw: Any, city: str) -> CityArchitectureProfile:
    """Fill every missing or malformed field from the fallback profile."""
    fallback = fallback_profile(city)
    if not isinstance(raw, dict):
        return fallback

    return CityArchitectureProfile(
        native_name=_scalar(raw.get("native_name"), fallback.native_name),
        english_name=_scalar(raw.get("english_name"), fallback.english_name),
        skyline=_scalar(raw.get("skyline"), fallback.skyline),
        landmarks=_string_list(raw.get("landmarks"), fallback.landmarks),
        styles=_string_list(raw.get("styles"), fallback.styles),
        materials=_string_list(raw.get("materials"), fallback.materials),
        palette=_string_list(raw.get("palette"), fallback.palette),
        street_pattern=_scalar(raw.get("street_pattern"), fallback.street_pattern),
        weather_cues=_string_list(raw.get("weather_cues"), fallback.weather_cues),
        avoid=_string_list(raw.get("avoid"), fallback.avoid),
    )


class ArchitectureService:
    """Resolve a CityArchitectureProfile through the text model."""

    def __init__(self, gateway: GeminiService):
        self.gateway = gateway

    async def analyze(self, city: str) -> CityArchitectureProfile:
        """
        Query the model for the city's architecture.

        Raises an AnalysisFailure subclass naming why the fallback is needed.
        """
        try:
            response = await self.gateway.generate_text(ANALYSIS_PROMPT.format(city=city))
        except CityCardError as e:
            raise AnalysisTransportError(str(e)) from e

        text = collect_text(response)
        if not text.strip():
            raise AnalysisEmptyResponse(f"No analysis text for {city!r}")

        raw = try_parse_json(text)
        if raw is None:
            raise AnalysisInvalidJson(f"Analysis for {city!r} is not a JSON object: {text[:200]}")

        profile = normalize_profile(raw, city)
        logger.debug(f"Architecture profile for {city}: {profile.english_name}, {len(profile.landmarks)} landmarks")
        return profile
