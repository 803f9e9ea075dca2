"""Utilities for transforming Overpass and Nominatim records into candidates."""

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple
from urllib.parse import urlsplit, urlunsplit

from org_locator.core import phone as phone_utils
from org_locator.models import (
    EVIDENCE_EMAIL,
    EVIDENCE_NAME,
    EVIDENCE_OTHER,
    EVIDENCE_PHONE,
    EVIDENCE_WEBSITE,
    Address,
    Candidate,
    Classification,
    Contact,
    Coordinates,
)

logger = logging.getLogger(__name__)

PHONE_TAGS = ("phone", "contact:phone", "telephone", "mobile", "contact:mobile")


def _any_value(value: Any) -> bool:
    return bool(value)


# First matching key wins; landuse only counts for farmland.
CLASSIFICATION_RULES: Tuple[Tuple[str, Callable[[Any], bool]], ...] = (
    ("shop", _any_value),
    ("amenity", _any_value),
    ("office", _any_value),
    ("craft", _any_value),
    ("industrial", _any_value),
    ("tourism", _any_value),
    ("leisure", _any_value),
    ("healthcare", _any_value),
    ("religion", _any_value),
    ("farm", _any_value),
    ("landuse", lambda value: value == "farmland"),
)


def classify(tags: Optional[Dict[str, Any]]) -> Optional[Classification]:
    for key, predicate in CLASSIFICATION_RULES:
        value = (tags or {}).get(key)
        if predicate(value):
            return Classification(category=key, value=str(value))
    return None


def normalize_url(url: Optional[str]) -> str:
    """Lowercase a URL and drop its trailing slash for equality checks."""
    raw = (url or "").strip()
    parts = urlsplit(raw)
    if parts.scheme and parts.netloc:
        raw = urlunsplit((parts.scheme, parts.netloc, parts.path or "/", parts.query, parts.fragment))
    if raw.endswith("/"):
        raw = raw[:-1]
    return raw.lower()


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _first_tag(tags: Dict[str, Any], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = _clean(tags.get(key))
        if value:
            return value
    return None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _coordinates(lat: Any, lon: Any) -> Optional[Coordinates]:
    latitude = _safe_float(lat)
    longitude = _safe_float(lon)
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


def contact_evidence(
    tags: Dict[str, Any],
    *,
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
) -> Set[str]:
    """Re-test a record's own contact tags against the caller's inputs."""
    evidence: Set[str] = set()
    if phone and any(phone_utils.matches(tags.get(key), phone) for key in PHONE_TAGS):
        evidence.add(EVIDENCE_PHONE)
    record_email = _clean(tags.get("email"))
    if email and record_email and record_email.lower() == email.strip().lower():
        evidence.add(EVIDENCE_EMAIL)
    record_website = _clean(tags.get("website"))
    if website and record_website and normalize_url(record_website) == normalize_url(website):
        evidence.add(EVIDENCE_WEBSITE)
    return evidence


def overpass_element_to_candidate(
    element: Dict[str, Any],
    *,
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
) -> Candidate:
    tags = element.get("tags") or {}
    center = element.get("center") or {}
    lat = element.get("lat", center.get("lat"))
    lon = element.get("lon", center.get("lon"))

    evidence = contact_evidence(tags, phone=phone, website=website, email=email)
    if not evidence:
        evidence = {EVIDENCE_OTHER}

    return Candidate(
        osm_type=str(element.get("type", "")),
        osm_id=element.get("id"),
        name=_clean(tags.get("name")) or "",
        classification=classify(tags),
        address=Address(
            street=_clean(tags.get("addr:street")),
            housenumber=_clean(tags.get("addr:housenumber")),
            postcode=_clean(tags.get("addr:postcode")),
            city=_clean(tags.get("addr:city")),
            region=_clean(tags.get("addr:region") or tags.get("addr:province")),
            country=_clean(tags.get("addr:country")),
        ),
        contact=Contact(
            phone=_first_tag(tags, PHONE_TAGS),
            website=_clean(tags.get("website")),
            email=_clean(tags.get("email")),
        ),
        raw_tags=dict(tags),
        coordinates=_coordinates(lat, lon),
        evidence=evidence,
    )


def nominatim_item_to_candidate(
    item: Dict[str, Any],
    *,
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
) -> Candidate:
    extratags = item.get("extratags") or {}
    address = item.get("address") or {}
    namedetails = item.get("namedetails") or {}

    classification = classify(extratags)
    if classification is None and item.get("class"):
        classification = classify({item["class"]: item.get("type")})

    evidence = {EVIDENCE_NAME}
    evidence |= contact_evidence(extratags, phone=phone, website=website, email=email)

    return Candidate(
        osm_type=str(item.get("osm_type", "")).lower(),
        osm_id=item.get("osm_id"),
        name=_clean(item.get("name")) or _clean(namedetails.get("name")) or _clean(item.get("display_name")) or "",
        classification=classification,
        address=Address(
            street=_clean(address.get("road")),
            housenumber=_clean(address.get("house_number")),
            postcode=_clean(address.get("postcode")),
            city=_clean(address.get("city") or address.get("town") or address.get("village")),
            region=_clean(address.get("state") or address.get("province")),
            country=_clean(address.get("country")),
        ),
        contact=Contact(
            phone=_first_tag(extratags, PHONE_TAGS),
            website=_clean(extratags.get("website")),
            email=_clean(extratags.get("email")),
        ),
        raw_tags=dict(extratags),
        coordinates=_coordinates(item.get("lat"), item.get("lon")),
        evidence=evidence,
    )


def unique_by_identity(elements: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Collapse raw Overpass elements sharing a type/id, last one wins."""
    unique: Dict[str, Dict[str, Any]] = {}
    for element in elements:
        if not isinstance(element, dict) or element.get("type") is None or element.get("id") is None:
            logger.debug("Skipping element without type/id: %s", element)
            continue
        unique[f"{element['type']}/{element['id']}"] = element
    return unique
