"""
Pytest configuration and fixtures.
"""

import base64
import sys
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
sys.path.append(os.getcwd())

from citycard.services.card_service import CardService
from citycard.services.lease_service import NullLease

CDN_BASE = "https://cdn.example.test"

# Smallest valid RIFF/WEBP header; content is never decoded
IMAGE_BYTES = b"RIFF\x1a\x00\x00\x00WEBPVP8L\x0d\x00\x00\x00/\x00\x00\x00\x10\x07\x10\x11\x11\x88\x88\xfe\x07\x00"


def image_response(data: bytes = IMAGE_BYTES, mime_type="image/png", text=None) -> dict:
    """generateContent response carrying one inline image part."""
    parts = []
    if text is not None:
        parts.append({"text": text})
    inline = {"data": base64.b64encode(data).decode("ascii")}
    if mime_type is not None:
        inline["mimeType"] = mime_type
    parts.append({"inlineData": inline})
    return {"candidates": [{"content": {"role": "model", "parts": parts}}]}


def text_response(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


@pytest.fixture
def store():
    """Blob store fake: empty bucket."""
    fake = MagicMock()
    fake.head = AsyncMock(return_value=False)
    fake.put = AsyncMock(return_value=None)
    return fake


@pytest.fixture
def gateway():
    """Model gateway fake: analysis returns prose, image returns a PNG."""
    fake = MagicMock()
    fake.generate_text = AsyncMock(return_value=text_response("no json here"))
    fake.generate_image = AsyncMock(return_value=image_response())
    return fake


@pytest.fixture
def card_service(store, gateway):
    return CardService(
        store=store,
        gateway=gateway,
        lease=NullLease(),
        prompt_version="v2",
        versioned_keys=True,
        profile_enrichment=True,
        cdn_base_url=CDN_BASE,
        lease_wait_seconds=0,
        lease_poll_seconds=0,
    )
