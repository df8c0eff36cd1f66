"""Services package."""

from citycard.services.architecture_service import ArchitectureService
from citycard.services.card_service import CardService
from citycard.services.gemini_service import GeminiService
from citycard.services.geocode_service import GeocodeService
from citycard.services.lease_service import CardLease, NullLease
from citycard.services.storage_service import (
    BlobStore,
    CloudinaryBlobStore,
    S3BlobStore,
    get_blob_store,
)

__all__ = [
    "ArchitectureService",
    "CardService",
    "GeminiService",
    "GeocodeService",
    "CardLease",
    "NullLease",
    "BlobStore",
    "CloudinaryBlobStore",
    "S3BlobStore",
    "get_blob_store",
]
