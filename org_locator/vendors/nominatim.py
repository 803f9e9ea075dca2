"""Client utilities for the Nominatim search API (name search)."""

import logging
from typing import Any, Dict, List, Optional

import requests

from org_locator.core.config import Settings, get_settings
from org_locator.etl.transform import nominatim_item_to_candidate
from org_locator.models import Candidate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class NominatimError(RuntimeError):
    """Raised when Nominatim returns a non-successful or unreadable response."""


def build_params(name: str, region: Optional[str], limit: int = 10) -> Dict[str, str]:
    query = f"{name}, {region}" if region else name
    return {
        "q": query,
        "format": "json",
        "addressdetails": "1",
        "extratags": "1",
        "namedetails": "1",
        "limit": str(limit),
    }


def fetch_items(params: Dict[str, str], settings: Settings) -> List[Dict[str, Any]]:
    url = f"{settings.nominatim_url}/search"
    logger.debug("Nominatim search %s params=%s", url, params)
    response = _SESSION.get(
        url,
        params=params,
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout,
    )
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError as exc:
        raise NominatimError("Nominatim returned a non-JSON payload") from exc
    if not isinstance(payload, list):
        raise NominatimError("Nominatim payload is not a list")
    return [item for item in payload if isinstance(item, dict)]


def search_by_name(
    name: str,
    region: Optional[str] = None,
    *,
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> List[Candidate]:
    """Search Nominatim for ``name`` (optionally scoped to ``region``).

    Every candidate carries name evidence; contact evidence is added when the
    record's own extratags match the caller's phone, email or website.
    """
    if not name or not name.strip():
        return []

    settings = settings or get_settings()
    params = build_params(name.strip(), region.strip() if region else None, settings.nominatim_limit)
    try:
        items = fetch_items(params, settings)
    except (requests.RequestException, NominatimError) as exc:
        logger.warning("Nominatim search failed for q=%s: %s", params["q"], exc)
        return []

    candidates = []
    for item in items:
        if not item.get("osm_type") or item.get("osm_id") is None:
            logger.debug("Skipping Nominatim item without osm_type/osm_id: %s", item.get("place_id"))
            continue
        candidates.append(
            nominatim_item_to_candidate(item, phone=phone, website=website, email=email)
        )
    return candidates
