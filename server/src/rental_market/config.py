"""Configuration and environment loading for Rental Market."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase (anon key: the client acts on behalf of the signed-in user)
    supabase_url: str
    supabase_key: str

    # Tables
    profiles_table: str = "users"
    listings_table: str = "listings"
    saved_listings_table: str = "saved_listings"
    messages_table: str = "messages"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Listing wizard
    max_listing_photos: int = 10


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
