# poifinder/providers/wikidata.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

import httpx

from ..core.errors import AdapterNetworkError, AdapterParseError, InvalidCoordinate
from .base import POI, Coordinate, POISource, POIType
from .http import HttpSourceConfig, JsonHttpSource, _safe_float, _safe_get

logger = logging.getLogger(__name__)

# WKT literal, longitude first: "Point(2.2945 48.8584)"
_WKT_POINT_RE = re.compile(r"Point\(\s*([-+]?[\d.]+(?:[eE][-+]?\d+)?)\s+([-+]?[\d.]+(?:[eE][-+]?\d+)?)\s*\)", re.IGNORECASE)
_YEAR_RE = re.compile(r"^\+?(-?\d{1,4})")
_QID_RE = re.compile(r"^Q\d+$")

# Notable-place classes queried, with the POIType each maps to.
PLACE_CLASSES: Dict[str, POIType] = {
    "Q570116": POIType.TOURIST_ATTRACTION,
    "Q33506": POIType.MUSEUM,
    "Q4989906": POIType.MONUMENT,
    "Q839954": POIType.HISTORIC_SITE,
    "Q23413": POIType.HISTORIC_SITE,
    "Q811979": POIType.LANDMARK,
    "Q12518": POIType.LANDMARK,
    "Q16970": POIType.RELIGIOUS_SITE,
    "Q44539": POIType.RELIGIOUS_SITE,
    "Q34627": POIType.RELIGIOUS_SITE,
    "Q32815": POIType.RELIGIOUS_SITE,
    "Q22698": POIType.PARK,
    "Q174782": POIType.SQUARE,
    "Q41176": POIType.LANDMARK,
}


@dataclass(frozen=True)
class WikidataConfig(HttpSourceConfig):
    endpoint: str = "https://query.wikidata.org/sparql"
    # label / description / article language
    language_code: str = "en"
    timeout_s: float = 30.0
    result_limit: int = 100


def parse_wkt_point(literal: str) -> Tuple[float, float]:
    """
    Parse a WKT "Point(lon lat)" literal into (lat, lon).
    The wire order is longitude first; the returned tuple is latitude first.
    """
    m = _WKT_POINT_RE.search(literal or "")
    if m is None:
        raise ValueError(f"invalid WKT point: {literal!r}")
    lon = float(m.group(1))
    lat = float(m.group(2))
    return lat, lon


def build_sparql_query(lat: float, lon: float, radius_m: int, cfg: WikidataConfig) -> str:
    classes = " ".join(f"wd:{qid}" for qid in PLACE_CLASSES)
    radius_km = max(0.01, radius_m / 1000.0)
    lang = cfg.language_code
    return f"""
SELECT DISTINCT ?place ?placeLabel ?coord ?placeType ?wikipedia ?description ?inception ?visitorCount ?heritageStatus ?image
WHERE {{
  SERVICE wikibase:around {{
    ?place wdt:P625 ?coord.
    bd:serviceParam wikibase:center "Point({lon} {lat})"^^geo:wktLiteral.
    bd:serviceParam wikibase:radius "{radius_km:g}".
  }}
  VALUES ?placeType {{ {classes} }}
  ?place wdt:P31/wdt:P279* ?placeType.
  OPTIONAL {{
    ?wikipedia schema:about ?place;
               schema:isPartOf <https://{lang}.wikipedia.org/>.
  }}
  OPTIONAL {{
    ?place schema:description ?description.
    FILTER(LANG(?description) = "{lang}")
  }}
  OPTIONAL {{ ?place wdt:P571 ?inception. }}
  OPTIONAL {{ ?place wdt:P1174 ?visitorCount. }}
  OPTIONAL {{ ?place wdt:P18 ?image. }}
  OPTIONAL {{
    ?place wdt:P1435 ?heritage.
    ?heritage rdfs:label ?heritageStatus.
    FILTER(LANG(?heritageStatus) = "en")
  }}
  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "{lang},en". }}
}}
LIMIT {cfg.result_limit}
""".strip()


def _value(binding: Dict[str, Any], key: str) -> Optional[str]:
    v = _safe_get(binding, [key, "value"])
    return v if isinstance(v, str) and v else None


def _entity_id(uri: Optional[str]) -> Optional[str]:
    if not uri:
        return None
    qid = uri.rstrip("/").rsplit("/", 1)[-1]
    return qid if _QID_RE.match(qid) else None


def _title_from_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return unquote(url.rstrip("/").rsplit("/", 1)[-1]).replace("_", " ") or None


def _year(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    m = _YEAR_RE.match(value)
    return int(m.group(1)) if m else None


def _visitors(value: Optional[str]) -> Optional[int]:
    count = _safe_float(value)
    return int(count) if count is not None and count >= 0 else None


class WikidataProvider(JsonHttpSource):
    """
    Notable places from the Wikidata SPARQL endpoint:
      - GET https://query.wikidata.org/sparql?query=...&format=json

    A place matching several classes (or with several heritage labels) comes back
    as several bindings; they are folded into one record per entity.
    """

    source = POISource.STRUCTURED_DATA

    def __init__(self, cfg: Optional[WikidataConfig] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(cfg or WikidataConfig(), client)

    async def fetch_nearby(self, origin: Coordinate, radius_m: int = 10_000) -> List[POI]:
        query = build_sparql_query(origin.lat, origin.lon, radius_m, self.cfg)
        data = await self._request_json(
            "GET",
            self.cfg.endpoint,
            params={"query": query, "format": "json"},
            headers={"Accept": "application/sparql-results+json"},
        )

        if "message" in data and "results" not in data:
            raise AdapterNetworkError(self.source, f"API error: {data['message']}")

        bindings = _safe_get(data, ["results", "bindings"])
        if bindings is None:
            return []
        if not isinstance(bindings, list):
            raise AdapterParseError(self.source, "results.bindings is not a list")

        pois: List[POI] = []
        for entity_key, binding in self._group_by_entity(bindings).items():
            try:
                poi = self._parse_binding(binding, origin)
            except (AdapterParseError, InvalidCoordinate, ValueError) as e:
                logger.warning("Skipping malformed wikidata binding %s: %s", entity_key, e)
                continue
            if poi is not None:
                pois.append(poi)

        logger.debug("wikidata returned %d usable entities from %d bindings", len(pois), len(bindings))
        return pois

    @staticmethod
    def _group_by_entity(bindings: List[Any]) -> Dict[str, Dict[str, Any]]:
        """First value per variable wins, in response order."""
        grouped: Dict[str, Dict[str, Any]] = {}
        for i, binding in enumerate(bindings):
            if not isinstance(binding, dict):
                logger.warning("Skipping malformed wikidata binding #%d: not an object", i)
                continue
            key = _value(binding, "place") or f"#{i}"
            merged = grouped.setdefault(key, {})
            for var, cell in binding.items():
                merged.setdefault(var, cell)
        return grouped

    def _parse_binding(self, binding: Dict[str, Any], origin: Coordinate) -> Optional[POI]:
        entity_id = _entity_id(_value(binding, "place"))
        name = _value(binding, "placeLabel")
        # the label service falls back to the bare QID when no label exists
        if not name or not name.strip() or name == entity_id:
            return None

        coord = _value(binding, "coord")
        if coord is None:
            raise AdapterParseError(self.source, "missing coord")
        lat, lon = parse_wkt_point(coord)

        place_type = PLACE_CLASSES.get(_entity_id(_value(binding, "placeType")) or "", POIType.LANDMARK)

        return POI.create(
            name=name.strip(),
            type=place_type,
            latitude=lat,
            longitude=lon,
            origin=origin,
            sources=[self.source],
            description=_value(binding, "description"),
            wikipedia_title=_title_from_url(_value(binding, "wikipedia")),
            external_entity_id=entity_id,
            image_url=_value(binding, "image"),
            heritage_status=_value(binding, "heritageStatus"),
            year_established=_year(_value(binding, "inception")),
            annual_visitors=_visitors(_value(binding, "visitorCount")),
        )
