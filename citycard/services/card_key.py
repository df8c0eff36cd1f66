"""
Cache key derivation for weather cards.

Object layout: {YYYY-MM}/{DD}/[{prompt_version}/]{city_slug}.webp
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from citycard.models.card import CacheKey, DatePartition
from citycard.services.slug import slugify_city

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


def resolve_date_partition(moment: Optional[datetime] = None) -> DatePartition:
    """
    Split the UTC calendar date of `moment` (default: now) into key segments.

    Naive datetimes are taken as UTC. Partitions roll over at UTC midnight
    wherever the caller is.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)

    iso_date = moment.date().isoformat()  # YYYY-MM-DD
    return DatePartition(year_month=iso_date[:7], day=iso_date[8:10])


def build_cache_key(
    city: str,
    prompt_version: Optional[str] = None,
    moment: Optional[datetime] = None,
) -> CacheKey:
    """Build the cache key for `city` on the UTC day of `moment`."""
    return CacheKey(
        partition=resolve_date_partition(moment),
        city_slug=slugify_city(city),
        prompt_version=prompt_version or None,
    )


def encode_object_key(object_key: str) -> str:
    """Percent-encode each `/`-delimited segment independently."""
    return "/".join(
        quote(segment, safe=_URI_COMPONENT_SAFE) for segment in object_key.split("/")
    )


def public_url(base_url: str, key: CacheKey) -> str:
    """Public CDN URL for a cache key."""
    return f"{base_url.rstrip('/')}/{encode_object_key(key.object_key)}"
