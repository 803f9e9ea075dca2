"""CLI job to look up OSM location candidates for an organization."""

import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence

from org_locator.core.config import get_settings
from org_locator.core.phone import format_international
from org_locator.core.resolver import get_default_resolver, selection_options

logger = logging.getLogger(__name__)


def run_resolve_job(
    *,
    name: Optional[str],
    regions: Sequence[str],
    phone: Optional[str],
    website: Optional[str],
    email: Optional[str],
    limit: int,
) -> dict:
    settings = get_settings()
    if not any((name, phone, website, email)):
        raise ValueError("At least one of name, phone, website or email is required")
    if limit <= 0:
        raise ValueError("limit must be positive")

    if phone:
        phone = format_international(phone, settings.default_phone_region)

    resolver = get_default_resolver()
    logger.info("Resolving organization name=%s regions=%s phone=%s", name, list(regions), phone)
    candidates = resolver.resolve_regions(
        regions,
        name=name,
        phone=phone,
        website=website,
        email=email,
    )
    if not candidates:
        logger.warning("No OSM location found for name=%s", name)

    shown = candidates[:limit]
    return {
        "candidates": [candidate.to_dict() for candidate in shown],
        "options": selection_options(shown, limit=limit),
        "total": len(candidates),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find OpenStreetMap locations for an organization")
    parser.add_argument("--name", dest="name", help="Organization name")
    parser.add_argument(
        "--region",
        dest="regions",
        action="append",
        default=[],
        help="Region to scope the name search to (repeatable)",
    )
    parser.add_argument("--phone", dest="phone", help="Phone number, international or local")
    parser.add_argument("--website", dest="website", help="Organization website")
    parser.add_argument("--email", dest="email", help="Organization email address")
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=get_settings().max_results,
        help="Maximum number of candidates to print",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        result = run_resolve_job(
            name=args.name,
            regions=args.regions,
            phone=args.phone,
            website=args.website,
            email=args.email,
            limit=args.limit,
        )
    except ValueError as exc:
        parser.error(str(exc))

    json.dump(result, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
