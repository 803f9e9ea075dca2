"""Core data models shared by the location resolver."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Set

EVIDENCE_PHONE = "phone"
EVIDENCE_EMAIL = "email"
EVIDENCE_WEBSITE = "website"
EVIDENCE_NAME = "name"
EVIDENCE_OTHER = "other"

# Lower number ranks first.
EVIDENCE_PRIORITY: Dict[str, int] = {
    EVIDENCE_PHONE: 1,
    EVIDENCE_EMAIL: 2,
    EVIDENCE_WEBSITE: 3,
    EVIDENCE_NAME: 4,
    EVIDENCE_OTHER: 5,
}


@dataclass(slots=True)
class Classification:
    category: str
    value: str


@dataclass(slots=True)
class Address:
    street: Optional[str] = None
    housenumber: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None


@dataclass(slots=True)
class Contact:
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None


@dataclass(slots=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(slots=True)
class Candidate:
    """A prospective real-world place returned by one of the OSM sources."""

    osm_type: str
    osm_id: int
    name: str = ""
    classification: Optional[Classification] = None
    address: Address = field(default_factory=Address)
    contact: Contact = field(default_factory=Contact)
    raw_tags: Dict[str, Any] = field(default_factory=dict, repr=False)
    coordinates: Optional[Coordinates] = None
    evidence: Set[str] = field(default_factory=set)

    @property
    def identity(self) -> str:
        return f"{self.osm_type}/{self.osm_id}"

    @property
    def best_evidence(self) -> int:
        return min((EVIDENCE_PRIORITY.get(kind, 99) for kind in self.evidence), default=99)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation, evidence listed strongest first."""
        payload = asdict(self)
        payload["identity"] = self.identity
        payload["evidence"] = sorted(self.evidence, key=lambda kind: EVIDENCE_PRIORITY.get(kind, 99))
        return payload
