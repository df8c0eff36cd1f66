"""
Application configuration using pydantic-settings.
Loads from environment variables / .env file.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "citycard"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = []

    # Redis (optional, enables the per-key generation lease)
    redis_url: str = ""

    # Weather cards
    # Bump card_prompt_version whenever the generation prompt changes meaning.
    card_prompt_version: str = "v2"
    card_versioned_keys: bool = True
    card_profile_enrichment: bool = True
    # Public URL prefix for cards. Empty: the storage backend's own delivery URL.
    card_cdn_base_url: str = ""
    card_aspect_ratio: str = "1:1"
    card_image_size: str = "2K"
    card_lease_seconds: int = 180
    card_lease_wait_seconds: float = 60.0
    card_lease_poll_seconds: float = 2.0

    # Generative model gateway (Gemini, directly or via Cloudflare AI Gateway)
    model_gateway_url: str = "https://generativelanguage.googleapis.com"
    gemini_api_key: str = ""
    ai_gateway_token: str = ""
    image_model: str = "gemini-3.1-flash-image-preview"
    text_model: str = "gemini-2.5-flash"
    model_timeout_seconds: float = 120.0

    # Blob storage
    storage_backend: Literal["s3", "cloudinary"] = "s3"

    # S3-compatible bucket (Cloudflare R2, MinIO, AWS)
    s3_endpoint_url: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_region: str = "auto"
    s3_bucket: str = ""
    s3_public_url: str = "https://card-r2.undownding.dev"

    # Cloudinary
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "weather-cards"

    # Reverse geocoding (Nominatim)
    geocoder_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocoder_user_agent: str = "city-card/1.0 (contact: support@city-card.local)"
    geocode_zoom: int = 10
    geocode_timeout_seconds: float = 10.0

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
