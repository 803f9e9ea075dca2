"""Client utilities for the Overpass API (contact-attribute search)."""

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from org_locator.core import phone as phone_utils
from org_locator.core.config import Settings, get_settings
from org_locator.core.rate_governor import RateGovernor, get_default_governor
from org_locator.etl.transform import PHONE_TAGS, overpass_element_to_candidate, unique_by_identity
from org_locator.models import Candidate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

_ENTITY_KINDS = ("node", "way", "relation")


class OverpassError(RuntimeError):
    """Raised when Overpass returns a non-successful or unreadable response."""


def quote(value: str) -> str:
    """Escape a value for use inside a double-quoted Overpass QL string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_clauses(
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
) -> List[str]:
    clauses: List[str] = []
    if phone:
        for pattern in phone_utils.canonicalize(phone):
            for field in PHONE_TAGS:
                clauses.append(f'node["{field}"~"{quote(pattern)}"];')
    for key, value in (("website", website), ("email", email)):
        if not value or not value.strip():
            continue
        regex = quote(re.escape(value.strip()))
        clauses.extend(f'{kind}["{key}"~"{regex}",i];' for kind in _ENTITY_KINDS)
    return clauses


def build_query(clauses: List[str], timeout: int = 25) -> str:
    body = "\n  ".join(clauses)
    return f"[out:json][timeout:{timeout}];\n(\n  {body}\n);\nout center;"


def fetch_elements(query: str, settings: Settings) -> List[Dict[str, Any]]:
    logger.debug("Overpass query against %s:\n%s", settings.overpass_url, query)
    response = _SESSION.post(
        settings.overpass_url,
        data={"data": query},
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout,
    )
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError as exc:
        raise OverpassError("Overpass returned a non-JSON payload") from exc
    if not isinstance(payload, dict):
        raise OverpassError("Overpass payload is not an object")
    elements = payload.get("elements") or []
    logger.debug("Overpass returned %d elements", len(elements))
    return elements


def search_by_attributes(
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
    *,
    governor: Optional[RateGovernor] = None,
    settings: Optional[Settings] = None,
) -> List[Candidate]:
    """Find OSM entities whose phone, website or email tags match the inputs.

    Returns an empty list without calling Overpass when no clause can be built,
    and also when Overpass is unreachable or answers with garbage.
    """
    clauses = build_clauses(phone=phone, website=website, email=email)
    if not clauses:
        return []

    settings = settings or get_settings()
    governor = governor or get_default_governor()
    query = build_query(clauses, timeout=settings.overpass_query_timeout)

    governor.wait()
    try:
        elements = fetch_elements(query, settings)
    except (requests.RequestException, OverpassError) as exc:
        logger.warning("Overpass search failed: %s", exc)
        return []

    unique = unique_by_identity(elements)
    return [
        overpass_element_to_candidate(element, phone=phone, website=website, email=email)
        for element in unique.values()
    ]
