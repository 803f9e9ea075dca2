"""HTTP entrypoint that serves location lookups to the conversation flow."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request

from org_locator.core.config import get_settings
from org_locator.core.phone import format_international
from org_locator.core.resolver import get_default_resolver, selection_options

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

_TEXT_FIELDS = ("name", "region", "phone", "website", "email")

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; touches no upstream service."""
    return jsonify({"status": "ok"}), 200


@app.post("/resolve")
def resolve_location() -> Any:
    """
    Rank OSM location candidates for an organization.
    Optional JSON fields: name, region, regions (list), phone, website, email, limit (int)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    fields: Dict[str, Optional[str]] = {}
    for key in _TEXT_FIELDS:
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            return jsonify({"error": f"{key} must be a string"}), 400
        fields[key] = value.strip() if value and value.strip() else None

    regions_raw = payload.get("regions") or []
    if not isinstance(regions_raw, list) or not all(isinstance(r, str) for r in regions_raw):
        return jsonify({"error": "regions must be a list of strings"}), 400
    regions: List[str] = [r.strip() for r in regions_raw if r.strip()]
    if fields["region"]:
        regions.insert(0, fields["region"])

    settings = get_settings()
    limit = settings.max_results
    limit_raw = payload.get("limit")
    if limit_raw is not None:
        try:
            limit = int(limit_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "limit must be numeric"}), 400
        if limit <= 0:
            return jsonify({"error": "limit must be positive"}), 400

    phone = fields["phone"]
    if phone:
        phone = format_international(phone, settings.default_phone_region)

    candidates = get_default_resolver().resolve_regions(
        regions,
        name=fields["name"],
        phone=phone,
        website=fields["website"],
        email=fields["email"],
    )
    shown = candidates[:limit]
    logger.info("Resolved %d candidates (%d shown) for name=%s", len(candidates), len(shown), fields["name"])

    return (
        jsonify(
            {
                "data": {
                    "candidates": [candidate.to_dict() for candidate in shown],
                    "options": selection_options(shown, limit=limit),
                    "total": len(candidates),
                }
            }
        ),
        200,
    )


def main() -> None:
    """Bind on PORT when the platform injects one, else on WORKER_PORT."""
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
