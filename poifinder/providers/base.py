# Provider interfaces and dataclasses.
# poifinder/providers/base.py
from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol

from ..core.geo import distance, validate_coordinate
from ..core.notability import NotabilityFlags, calculate_notability_score


@dataclass(frozen=True)
class Coordinate:
    """A validated WGS84 point used as the query origin."""
    lat: float
    lon: float

    def __post_init__(self):
        validate_coordinate(self.lat, self.lon)

    def distance_to(self, other: "Coordinate") -> float:
        return distance(self.lat, self.lon, other.lat, other.lon)


class POIType(str, Enum):
    MONUMENT = "monument"
    MUSEUM = "museum"
    LANDMARK = "landmark"
    RELIGIOUS_SITE = "religious_site"
    PARK = "park"
    VIEWPOINT = "viewpoint"
    TOURIST_ATTRACTION = "tourist_attraction"
    HISTORIC_SITE = "historic_site"
    SQUARE = "square"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


HISTORIC_TYPES = frozenset({POIType.HISTORIC_SITE, POIType.MONUMENT})


class POISource(str, Enum):
    GEOSEARCH = "geosearch"
    TAG_QUERY = "tag_query"
    STRUCTURED_DATA = "structured_data"

    @property
    def priority(self) -> int:
        """Merge preference, higher wins. Reflects curation quality."""
        return _SOURCE_PRIORITY[self]

    @property
    def base_notability(self) -> int:
        return _SOURCE_BASE_NOTABILITY[self]

    @property
    def display_name(self) -> str:
        return _SOURCE_DISPLAY_NAME[self]


_SOURCE_PRIORITY = {
    POISource.GEOSEARCH: 3,
    POISource.STRUCTURED_DATA: 2,
    POISource.TAG_QUERY: 1,
}
_SOURCE_BASE_NOTABILITY = {
    POISource.GEOSEARCH: 75,
    POISource.STRUCTURED_DATA: 50,
    POISource.TAG_QUERY: 50,
}
_SOURCE_DISPLAY_NAME = {
    POISource.GEOSEARCH: "Wikipedia",
    POISource.STRUCTURED_DATA: "Wikidata",
    POISource.TAG_QUERY: "OpenStreetMap",
}

# Optional enrichment fields, merged by source priority.
ENRICHMENT_FIELDS = (
    "description",
    "wikipedia_title",
    "external_entity_id",
    "image_url",
    "website",
    "opening_hours",
    "heritage_status",
    "year_established",
    "annual_visitors",
)

_ID_STRIP_RE = re.compile(r"[^\w\s]")


def generate_poi_id(name: str, lat: float, lon: float) -> str:
    """
    Stable content hash of normalized name + coordinates rounded to 4 decimals
    (~11m), so re-fetching the same place from the same source yields the same id.
    """
    normalized = " ".join(_ID_STRIP_RE.sub("", name.lower()).split())
    payload = f"{normalized}|{lat:.4f}|{lon:.4f}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class POI:
    """
    A candidate real-world place, normalized across sources.

    Build records with `POI.create`, which derives `id` and `notability_score`.
    Records are immutable; merging produces a new record.
    """
    id: str
    name: str
    type: POIType
    latitude: float
    longitude: float
    distance_from_origin: float
    sources: FrozenSet[POISource]
    notability_score: int
    discovered_at: datetime

    description: Optional[str] = None
    wikipedia_title: Optional[str] = None
    external_entity_id: Optional[str] = None
    image_url: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[str] = None
    heritage_status: Optional[str] = None
    year_established: Optional[int] = None
    annual_visitors: Optional[int] = None

    def __post_init__(self):
        validate_coordinate(self.latitude, self.longitude)
        if self.distance_from_origin < 0:
            raise ValueError("distance_from_origin must be non-negative")
        if not self.sources:
            raise ValueError("POI must have at least one source")
        if not 0 <= self.notability_score <= 100:
            raise ValueError("notability_score must be between 0 and 100")
        # accept any iterable of sources, store a frozenset
        if not isinstance(self.sources, frozenset):
            object.__setattr__(self, "sources", frozenset(self.sources))

    @classmethod
    def create(
        cls,
        *,
        name: str,
        type: POIType,
        latitude: float,
        longitude: float,
        origin: Coordinate,
        sources: Iterable[POISource],
        distance_from_origin: Optional[float] = None,
        discovered_at: Optional[datetime] = None,
        **enrichment: Any,
    ) -> "POI":
        unknown = set(enrichment) - set(ENRICHMENT_FIELDS)
        if unknown:
            raise TypeError(f"unknown POI fields: {sorted(unknown)}")
        if not name or not name.strip():
            raise ValueError("POI name must be non-empty")
        validate_coordinate(latitude, longitude)

        source_set = frozenset(sources)
        if distance_from_origin is None:
            distance_from_origin = distance(origin.lat, origin.lon, latitude, longitude)

        return cls(
            id=generate_poi_id(name, latitude, longitude),
            name=name,
            type=type,
            latitude=latitude,
            longitude=longitude,
            distance_from_origin=float(distance_from_origin),
            sources=source_set,
            notability_score=score_fields(type, source_set, enrichment),
            discovered_at=discovered_at or datetime.now(timezone.utc),
            **enrichment,
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @property
    def priority(self) -> int:
        return max(s.priority for s in self.sources)

    def enrichment(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in ENRICHMENT_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "distance_from_origin": round(self.distance_from_origin, 1),
            "sources": sorted(s.value for s in self.sources),
            "notability_score": self.notability_score,
            "discovered_at": self.discovered_at.isoformat(),
        }
        d.update(self.enrichment())
        return d


def score_fields(type: POIType, sources: Iterable[POISource], fields: Dict[str, Any]) -> int:
    """Notability for a record with the given type, sources and enrichment values."""
    flags = NotabilityFlags.from_poi_fields(
        external_entity_id=fields.get("external_entity_id"),
        wikipedia_title=fields.get("wikipedia_title"),
        heritage_status=fields.get("heritage_status"),
        annual_visitors=fields.get("annual_visitors"),
        website=fields.get("website"),
        opening_hours=fields.get("opening_hours"),
        image_url=fields.get("image_url"),
        historic=fields.get("year_established") is not None or type in HISTORIC_TYPES,
    )
    base = max(s.base_notability for s in sources)
    return calculate_notability_score(flags, base=base)


class SourceAdapter(Protocol):
    source: POISource
    timeout_s: float

    async def fetch_nearby(self, origin: Coordinate, radius_m: int) -> List[POI]:
        """
        Returns POIs within radius_m of origin. An empty result is [], never an error.
        Raises AdapterTimeout / AdapterNetworkError / AdapterParseError on failure.
        """
        ...
