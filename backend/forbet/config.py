"""
backend/forbet/config.py

Purpose:
    Central settings loading for the data-acquisition backend: provider
    credentials and base URLs, cache backend selection, and per-category
    cache TTLs.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Durable cache store (optional). REDIS_URL wins over MONGO_URI; with
    # neither set the in-memory cache is used.
    REDIS_URL: str = ""
    MONGO_URI: str = ""
    MONGO_DB: str = "forbet"
    MONGO_CACHE_COLLECTION: str = "cache_entries"

    # Cache TTLs (seconds)
    CACHE_DEFAULT_TTL: int = 300
    CACHE_FIXTURES_TTL: int = 600
    CACHE_VALIDATION_TTL: int = 180
    CACHE_LIVE_TTL: int = 30
    CACHE_ODDS_TTL: int = 600
    CACHE_PREDICTIONS_TTL: int = 1800
    CACHE_ENRICHED_TTL: int = 3600
    CACHE_TEAM_LOGOS_TTL: int = 86400
    CACHE_SWEEP_INTERVAL_SECONDS: int = 300

    # TheSportsDB (free tier key "3")
    THESPORTSDB_BASE_URL: str = "https://www.thesportsdb.com/api/v1/json"
    THESPORTSDB_API_KEY: str = "3"
    THESPORTSDB_RATE_LIMIT_RPM: int = 300

    # football-data.org
    FOOTBALL_DATA_BASE_URL: str = "https://api.football-data.org/v4"
    FOOTBALL_DATA_API_KEY: str = ""
    FOOTBALL_DATA_RATE_LIMIT_RPM: int = 100

    # API-Football (api-sports.io)
    API_FOOTBALL_BASE_URL: str = "https://v3.football.api-sports.io"
    API_FOOTBALL_KEY: str = ""
    API_FOOTBALL_RATE_LIMIT_RPM: int = 100

    # Sportmonks v3
    SPORTMONKS_BASE_URL: str = "https://api.sportmonks.com/v3"
    SPORTMONKS_API_KEY: str = ""
    SPORTMONKS_RATE_LIMIT_RPM: int = 60

    # Outbound HTTP
    PROVIDER_TIMEOUT_SECONDS: float = 15.0
    PROVIDER_MAX_RETRIES: int = 2
    PROVIDER_BASE_DELAY_SECONDS: float = 1.0

    # Treat an empty fixture list from an eligible provider as the answer
    # instead of falling back to the next provider.
    TRUST_EMPTY_PROVIDER_RESPONSES: bool = False

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
