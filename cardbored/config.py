from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Cardbored"

    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_bulk_type: str = "default_cards"
    user_agent: str = "Cardbored/1.0"

    http_timeout_seconds: float = 10.0
    # The default-cards file is ~80MB
    bulk_download_timeout_seconds: float = 300.0

    bulk_max_age_hours: float = 24.0
    # When True, a stale snapshot keeps answering while the refresh runs
    bulk_background_refresh: bool = True
    # After a failed refresh, wait this long before downloading again
    bulk_retry_after_minutes: float = 15.0

    # Lookup file written by the build job and by successful refreshes.
    # None keeps the bulk index in memory only.
    price_lookup_path: Path | None = None
    warm_price_index_on_startup: bool = False

    live_lookup_enabled: bool = True
    live_fallback_on_miss: bool = True
    live_lookup_interval_ms: int = 100
    live_lookup_max_cards: int = 15

    default_price_threshold: float = 3.0


settings = Settings()
