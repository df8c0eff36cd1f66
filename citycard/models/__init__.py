"""Models package for weather card data types."""

from citycard.models.card import (
    CacheKey,
    CardDescription,
    CityArchitectureProfile,
    DatePartition,
    GeneratedCard,
)

__all__ = [
    "CacheKey",
    "CardDescription",
    "CityArchitectureProfile",
    "DatePartition",
    "GeneratedCard",
]
