from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database (in-memory by default, deals do not survive a restart).
    # The CLI "init" and "list" commands need a file URL such as
    # sqlite:///./data/deals.db, otherwise each run sees an empty database.
    database_url: str = "sqlite://"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 5001
    debug: bool = False

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Geocoding
    geocoder_base_url: str = "https://api.zippopotam.us"
    geocoder_country: str = "us"
    geocoder_timeout: float = 10.0

    # Listing
    default_radius_miles: float = 30.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
