"""Weather card data types: date partitions, cache keys, profiles, generated images."""

from dataclasses import dataclass, field, asdict
from typing import List, Optional


@dataclass(frozen=True)
class DatePartition:
    """UTC calendar date split into the two leading key segments."""
    year_month: str  # YYYY-MM
    day: str  # DD


@dataclass(frozen=True)
class CacheKey:
    """
    Identity of "today's card for this city".

    Two requests are the same request iff their CacheKeys are equal.
    prompt_version is None when the deployment does not version its keys.
    """
    partition: DatePartition
    city_slug: str
    prompt_version: Optional[str] = None
    extension: str = "webp"

    @property
    def segments(self) -> List[str]:
        parts = [self.partition.year_month, self.partition.day]
        if self.prompt_version:
            parts.append(self.prompt_version)
        parts.append(f"{self.city_slug}.{self.extension}")
        return parts

    @property
    def object_key(self) -> str:
        return "/".join(self.segments)

    def __str__(self) -> str:
        return self.object_key


@dataclass
class CityArchitectureProfile:
    """Architectural facts about a city used to ground the card image."""
    native_name: str
    english_name: str
    skyline: str
    landmarks: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    materials: List[str] = field(default_factory=list)
    palette: List[str] = field(default_factory=list)
    street_pattern: str = ""
    weather_cues: List[str] = field(default_factory=list)
    avoid: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CardDescription:
    """Structured summary the image model may append after the card."""
    city_slug: Optional[str] = None
    resolved_name: Optional[str] = None
    condition: Optional[str] = None
    icon: Optional[str] = None
    temp_min: Optional[int] = None
    temp_max: Optional[int] = None
    current_temp: Optional[int] = None


@dataclass
class GeneratedCard:
    """Decoded image payload ready to be written to the blob store."""
    data: bytes
    content_type: str = "image/webp"
    description: Optional[CardDescription] = None

    @property
    def size(self) -> int:
        return len(self.data)
