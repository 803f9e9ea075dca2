"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
FALLBACK_USER_AGENT = "crm-org-locator/1.0 (+https://github.com/crm-org-locator)"


class ConfigError(RuntimeError):
    """Raised when a configuration value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    overpass_url: str = DEFAULT_OVERPASS_URL
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    user_agent: str = FALLBACK_USER_AGENT
    request_timeout: float = 15.0
    min_interval_ms: int = 1000
    overpass_query_timeout: int = 25
    nominatim_limit: int = 10
    max_results: int = 8
    default_phone_region: Optional[str] = None
    worker_port: int = 9000


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    user_agent = os.getenv("OSM_USER_AGENT", "").strip()
    if not user_agent:
        logger.warning(
            "OSM_USER_AGENT is not set; using fallback User-Agent. "
            "This may violate the Nominatim and Overpass usage policies."
        )
        user_agent = FALLBACK_USER_AGENT

    default_phone_region_raw = os.getenv("DEFAULT_PHONE_REGION")
    default_phone_region = default_phone_region_raw.strip().upper() if default_phone_region_raw else None

    return Settings(
        overpass_url=os.getenv("OVERPASS_URL") or DEFAULT_OVERPASS_URL,
        nominatim_url=(os.getenv("NOMINATIM_URL") or DEFAULT_NOMINATIM_URL).rstrip("/"),
        user_agent=user_agent,
        request_timeout=_env_number("OSM_REQUEST_TIMEOUT", "15", float),
        min_interval_ms=_env_number("OVERPASS_MIN_INTERVAL_MS", "1000", int),
        overpass_query_timeout=_env_number("OVERPASS_QUERY_TIMEOUT", "25", int),
        nominatim_limit=_env_number("NOMINATIM_LIMIT", "10", int),
        max_results=_env_number("RESOLVER_MAX_RESULTS", "8", int),
        default_phone_region=default_phone_region,
        worker_port=_env_number("WORKER_PORT", "9000", int),
    )
