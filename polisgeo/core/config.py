"""Configuration management for the location resolution engine."""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Base paths
PACKAGE_DIR = Path(__file__).parent.parent
PROJECT_ROOT = PACKAGE_DIR.parent
DATA_DIR = PACKAGE_DIR / "data"
GAZETTEER_PATH = Path(os.getenv("GAZETTEER_PATH", DATA_DIR / "gazetteer.csv"))

DAY_MS = 24 * 60 * 60 * 1000

# Location index settings
PREFIX_INDEX_LENGTH: int = int(os.getenv("PREFIX_INDEX_LENGTH", "3"))
FUZZY_THRESHOLD: int = int(os.getenv("FUZZY_THRESHOLD", "2"))
# "first_letter" only scores names sharing the query's first character,
# "full_scan" scores the whole gazetteer
FUZZY_CANDIDATE_STRATEGY: str = os.getenv("FUZZY_CANDIDATE_STRATEGY", "first_letter")

# Nominatim (external geocoder) settings
NOMINATIM_BASE_URL: str = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
NOMINATIM_USER_AGENT: str = os.getenv("NOMINATIM_USER_AGENT", "PolisAPI/1.0")
NOMINATIM_TIMEOUT_MS: int = int(os.getenv("NOMINATIM_TIMEOUT_MS", "5000"))
NOMINATIM_COUNTRY_CODES: str = os.getenv("NOMINATIM_COUNTRY_CODES", "se")
NOMINATIM_LANGUAGE: str = os.getenv("NOMINATIM_LANGUAGE", "sv")
ENABLE_EXTERNAL_GEOCODER: bool = _env_bool("ENABLE_EXTERNAL_GEOCODER", "true")

# Cache settings (milliseconds)
GEOCODING_CACHE_TTL_MS: int = int(os.getenv("GEOCODING_CACHE_TTL_MS", str(30 * DAY_MS)))
FAILED_GEOCODING_CACHE_TTL_MS: int = int(os.getenv("FAILED_GEOCODING_CACHE_TTL_MS", str(DAY_MS)))
NORMALIZED_NAME_CACHE_TTL_MS: int = int(os.getenv("NORMALIZED_NAME_CACHE_TTL_MS", str(90 * DAY_MS)))
CACHE_DEFAULT_TTL_MS: int = int(os.getenv("CACHE_DEFAULT_TTL_MS", "60000"))
CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", "100000"))
CACHE_PURGE_INTERVAL_SECONDS: float = float(os.getenv("CACHE_PURGE_INTERVAL_SECONDS", "300"))

# Batch resolution defaults
BATCH_CONCURRENCY: int = int(os.getenv("BATCH_CONCURRENCY", "5"))
BATCH_DELAY_MS: int = int(os.getenv("BATCH_DELAY_MS", "200"))
BATCH_RETRIES: int = int(os.getenv("BATCH_RETRIES", "1"))
BATCH_RETRY_DELAY_MS: int = int(os.getenv("BATCH_RETRY_DELAY_MS", "1000"))
BATCH_TIMEOUT_MS: int = int(os.getenv("BATCH_TIMEOUT_MS", "5000"))
MAX_BATCH_SIZE: int = int(os.getenv("MAX_BATCH_SIZE", "100"))

# Logging / error tracking
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
SENTRY_DSN: Optional[str] = os.getenv("SENTRY_DSN")
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
RELEASE: str = os.getenv("RELEASE", "unknown")
