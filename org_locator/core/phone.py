"""Phone number helpers used to match free-text OSM phone tags."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import List, Optional, Tuple

import phonenumbers

logger = logging.getLogger(__name__)

_NON_DIAL_CHARS = re.compile(r"[^\d+]")


@lru_cache(maxsize=1)
def calling_codes() -> Tuple[str, ...]:
    """Known international calling codes, longest first."""
    codes = {str(code) for code in phonenumbers.COUNTRY_CODE_TO_REGION_CODE}
    return tuple(sorted(codes, key=lambda code: (-len(code), code)))


def split_calling_code(phone: str) -> Optional[Tuple[str, str]]:
    """Return (calling code, subscriber digits) for an international number."""
    normalized = _NON_DIAL_CHARS.sub("", phone or "")
    if normalized.startswith("00"):
        normalized = "+" + normalized[2:]
    if not normalized.startswith("+"):
        return None

    for code in calling_codes():
        if normalized.startswith("+" + code):
            return code, normalized[1 + len(code):]
    return None


def canonicalize(phone: str) -> List[str]:
    """Build regex patterns matching ``phone`` across notations.

    Every subscriber digit only has to appear after the previous one, so
    "+31 6 12345678", "0031612345678" and "+31-6-1234 5678" all match the same
    pattern. Numbers without a ``+``/``00`` prefix or with an unknown calling
    code produce no patterns.
    """
    split = split_calling_code(phone)
    if split is None:
        return []
    code, rest = split
    if not rest:
        return []

    pattern = r"(\+|00)" + code + "".join(f".*{digit}" for digit in rest)
    return [pattern]


def matches(candidate_phone: Optional[str], input_phone: Optional[str]) -> bool:
    """True when any number in an OSM phone tag matches ``input_phone``.

    OSM phone tags may hold several numbers separated by ``;``.
    """
    if not candidate_phone or not input_phone:
        return False
    patterns = [re.compile(p) for p in canonicalize(input_phone)]
    numbers = [part.strip() for part in candidate_phone.split(";")]
    return any(pattern.search(number) for number in numbers for pattern in patterns)


def format_international(phone: Optional[str], default_region: Optional[str] = None) -> Optional[str]:
    """Rewrite a local number into international notation.

    Numbers already starting with ``+`` or ``00`` are parsed as-is; local numbers
    need ``default_region`` (ISO 3166 alpha-2, e.g. "NL"). The input is returned
    unchanged when it cannot be parsed.
    """
    if not phone or not phone.strip():
        return phone
    raw = phone.strip()
    if raw.startswith("00"):
        raw = "+" + raw[2:]
    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        logger.debug("Unable to parse phone %r with region %s", phone, default_region)
        return phone
    if not phonenumbers.is_possible_number(parsed):
        return phone
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.INTERNATIONAL)
