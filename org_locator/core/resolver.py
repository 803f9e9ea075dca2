"""Merge and rank OSM location candidates for an organization."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import fields
from typing import Any, Dict, Iterable, List, Optional, Sequence

from org_locator.core.config import Settings, get_settings
from org_locator.core.rate_governor import RateGovernor, get_default_governor
from org_locator.models import EVIDENCE_OTHER, Candidate
from org_locator.vendors import nominatim, overpass

logger = logging.getLogger(__name__)

NONE_OF_THE_ABOVE = "osmnode:none"


def _merge_fields(target: Candidate, incoming: Candidate) -> None:
    """Backfill ``target`` from ``incoming``; non-empty incoming values win."""
    if incoming.name:
        target.name = incoming.name
    if incoming.classification is not None:
        target.classification = incoming.classification
    if incoming.coordinates is not None:
        target.coordinates = incoming.coordinates
    for part in ("address", "contact"):
        target_part = getattr(target, part)
        incoming_part = getattr(incoming, part)
        for item in fields(target_part):
            value = getattr(incoming_part, item.name)
            if value:
                setattr(target_part, item.name, value)
    target.raw_tags.update(incoming.raw_tags)
    target.evidence |= incoming.evidence
    if len(target.evidence) > 1:
        target.evidence.discard(EVIDENCE_OTHER)


def merge_candidates(*sources: Iterable[Candidate]) -> List[Candidate]:
    """Unify candidates by identity, in the order the sources are given.

    When two sources set the same field the one applied later wins.
    """
    combined: Dict[str, Candidate] = {}
    for source in sources:
        for candidate in source:
            existing = combined.get(candidate.identity)
            if existing is None:
                combined[candidate.identity] = candidate
            else:
                _merge_fields(existing, candidate)
    return list(combined.values())


def rank_candidates(candidates: Iterable[Candidate]) -> List[Candidate]:
    """More evidence kinds first, then strongest evidence (phone before name)."""
    return sorted(candidates, key=lambda c: (-len(c.evidence), c.best_evidence))


def selection_options(candidates: Sequence[Candidate], limit: int = 8) -> List[Dict[str, str]]:
    """Selection entries for a numbered disambiguation list."""
    options = [
        {"text": f"# {candidate.osm_id}", "token": f"osmnode:{candidate.identity}"}
        for candidate in candidates[:limit]
    ]
    options.append({"text": "None of the above", "token": NONE_OF_THE_ABOVE})
    return options


class LocationResolver:
    """Composes the Overpass and Nominatim adapters behind one ``resolve`` call."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        governor: Optional[RateGovernor] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.governor = governor or get_default_governor()

    def resolve(
        self,
        name: Optional[str] = None,
        region: Optional[str] = None,
        phone: Optional[str] = None,
        website: Optional[str] = None,
        email: Optional[str] = None,
    ) -> List[Candidate]:
        by_attributes: List[Candidate] = []
        if phone or website or email:
            by_attributes = overpass.search_by_attributes(
                phone=phone,
                website=website,
                email=email,
                governor=self.governor,
                settings=self.settings,
            )

        by_name: List[Candidate] = []
        if name:
            by_name = nominatim.search_by_name(
                name,
                region,
                phone=phone,
                website=website,
                email=email,
                settings=self.settings,
            )

        ranked = rank_candidates(merge_candidates(by_attributes, by_name))
        logger.info(
            "Resolved name=%r region=%r: overpass=%d nominatim=%d merged=%d",
            name,
            region,
            len(by_attributes),
            len(by_name),
            len(ranked),
        )
        return ranked

    def resolve_regions(
        self,
        regions: Sequence[str],
        name: Optional[str] = None,
        phone: Optional[str] = None,
        website: Optional[str] = None,
        email: Optional[str] = None,
    ) -> List[Candidate]:
        """Run one region-scoped ``resolve`` per region concurrently."""
        regions = [region for region in regions if region]
        if not regions:
            return self.resolve(name=name, phone=phone, website=website, email=email)

        def _run(region: str) -> List[Candidate]:
            return self.resolve(name=name, region=region, phone=phone, website=website, email=email)

        with ThreadPoolExecutor(max_workers=len(regions)) as executor:
            per_region = list(executor.map(_run, regions))

        for region, results in zip(regions, per_region):
            logger.debug("Region %s produced %d candidates", region, len(results))
        return rank_candidates(merge_candidates(*per_region))


_default_resolver: Optional[LocationResolver] = None


def get_default_resolver() -> LocationResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = LocationResolver()
    return _default_resolver


def resolve(
    name: Optional[str] = None,
    region: Optional[str] = None,
    phone: Optional[str] = None,
    website: Optional[str] = None,
    email: Optional[str] = None,
) -> List[Candidate]:
    """Ranked location candidates for an organization; empty when nothing matches."""
    return get_default_resolver().resolve(
        name=name, region=region, phone=phone, website=website, email=email
    )


def resolve_regions(regions: Sequence[str], **attributes: Any) -> List[Candidate]:
    return get_default_resolver().resolve_regions(regions, **attributes)
