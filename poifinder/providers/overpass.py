# poifinder/providers/overpass.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..core.errors import AdapterNetworkError, AdapterParseError, AdapterTimeout, InvalidCoordinate
from .base import POI, Coordinate, POISource, POIType
from .http import HttpSourceConfig, JsonHttpSource, _safe_float
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^\s*~?(-?\d{1,4})")
_UNNAMED = "unnamed"


@dataclass(frozen=True)
class OverpassConfig(HttpSourceConfig):
    endpoint: str = "https://overpass-api.de/api/interpreter"
    timeout_s: float = 25.0
    # server-side [timeout:N] of the QL query
    query_timeout_s: int = 25
    # overpass-api.de usage policy: at most one request per second
    min_request_interval_s: float = 1.0

    tourism_values: str = "attraction|museum|monument|artwork|viewpoint|gallery|zoo|aquarium|theme_park"
    historic_values: str = "monument|memorial|archaeological_site|castle|ruins|fort|manor|palace|building"
    amenity_values: str = "place_of_worship|theatre|arts_centre|library|fountain"


def build_overpass_query(lat: float, lon: float, radius_m: int, cfg: OverpassConfig) -> str:
    around = f"(around:{int(radius_m)},{lat},{lon})"
    return (
        f"[out:json][timeout:{cfg.query_timeout_s}];\n"
        "(\n"
        f'  node["tourism"~"^({cfg.tourism_values})$"]{around};\n'
        f'  node["historic"~"^({cfg.historic_values})$"]{around};\n'
        f'  node["amenity"~"^({cfg.amenity_values})$"]{around};\n'
        f'  node["leisure"="park"]["name"]{around};\n'
        f'  node["place"="square"]{around};\n'
        ");\n"
        "out body;"
    )


def map_osm_type(tags: Dict[str, str]) -> POIType:
    historic = tags.get("historic")
    if historic:
        if historic in ("monument", "memorial"):
            return POIType.MONUMENT
        return POIType.HISTORIC_SITE

    tourism = tags.get("tourism")
    if tourism:
        if tourism in ("museum", "gallery"):
            return POIType.MUSEUM
        if tourism == "viewpoint":
            return POIType.VIEWPOINT
        if tourism == "monument":
            return POIType.MONUMENT
        return POIType.TOURIST_ATTRACTION

    if tags.get("amenity") == "place_of_worship":
        return POIType.RELIGIOUS_SITE
    if tags.get("leisure") == "park":
        return POIType.PARK
    if tags.get("place") == "square":
        return POIType.SQUARE
    return POIType.OTHER


def _wikipedia_title(tag: Optional[str]) -> Optional[str]:
    # "en:Eiffel Tower" -> "Eiffel Tower"
    if not tag:
        return None
    _, sep, title = tag.partition(":")
    title = title if sep else tag
    return title.strip() or None


def _year(tag: Optional[str]) -> Optional[int]:
    if not tag:
        return None
    m = _YEAR_RE.match(tag)
    return int(m.group(1)) if m else None


def _heritage(tags: Dict[str, str]) -> Optional[str]:
    if tags.get("unesco") or tags.get("heritage:operator", "").lower() == "whc":
        return "UNESCO World Heritage Site"
    level = tags.get("heritage")
    if level:
        operator = tags.get("heritage:operator")
        return f"Heritage level {level}" + (f" ({operator})" if operator else "")
    return None


def _image(tags: Dict[str, str]) -> Optional[str]:
    image = tags.get("image")
    if image and image.startswith(("http://", "https://")):
        return image
    commons = tags.get("wikimedia_commons")
    if commons and commons.startswith("File:"):
        return "https://commons.wikimedia.org/wiki/Special:FilePath/" + quote(commons[len("File:"):])
    return None


class OverpassProvider(JsonHttpSource):
    """
    OpenStreetMap tag index via the Overpass API:
      - POST https://overpass-api.de/api/interpreter  (form field `data` = Overpass QL)

    Every request passes through a RateLimiter (1 req/s by default). Pass a shared
    limiter when several provider instances hit the same endpoint.
    """

    source = POISource.TAG_QUERY

    def __init__(
        self,
        cfg: Optional[OverpassConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        cfg = cfg or OverpassConfig()
        super().__init__(cfg, client)
        self.rate_limiter = rate_limiter or RateLimiter(cfg.min_request_interval_s)

    async def fetch_nearby(self, origin: Coordinate, radius_m: int = 10_000) -> List[POI]:
        query = build_overpass_query(origin.lat, origin.lon, radius_m, self.cfg)

        await self.rate_limiter.acquire()
        data = await self._request_json("POST", self.cfg.endpoint, data={"data": query})

        remark = data.get("remark")
        if isinstance(remark, str) and "error" in remark.lower():
            if "timed out" in remark.lower():
                raise AdapterTimeout(self.source, f"query timed out: {remark}")
            raise AdapterNetworkError(self.source, f"API error: {remark}")

        elements = data.get("elements")
        if elements is None:
            return []
        if not isinstance(elements, list):
            raise AdapterParseError(self.source, "elements is not a list")

        pois: List[POI] = []
        for element in elements:
            try:
                poi = self._parse_element(element, origin)
            except (AdapterParseError, InvalidCoordinate, ValueError) as e:
                logger.warning("Skipping malformed overpass element %r: %s", element, e)
                continue
            if poi is not None:
                pois.append(poi)

        logger.debug("overpass returned %d/%d usable elements", len(pois), len(elements))
        return pois

    def _parse_element(self, element: Any, origin: Coordinate) -> Optional[POI]:
        if not isinstance(element, dict):
            raise AdapterParseError(self.source, "element is not an object")
        if element.get("type", "node") != "node":
            return None

        tags = element.get("tags") or {}
        if not isinstance(tags, dict):
            raise AdapterParseError(self.source, "tags is not an object")

        # entries without a usable name are dropped without a warning
        name = tags.get("name")
        if not isinstance(name, str) or not name.strip() or _UNNAMED in name.lower():
            return None

        lat = _safe_float(element.get("lat"))
        lon = _safe_float(element.get("lon"))
        if lat is None or lon is None:
            raise AdapterParseError(self.source, "missing coordinates")

        return POI.create(
            name=name.strip(),
            type=map_osm_type(tags),
            latitude=lat,
            longitude=lon,
            origin=origin,
            sources=[self.source],
            description=tags.get("description") or None,
            wikipedia_title=_wikipedia_title(tags.get("wikipedia")),
            external_entity_id=tags.get("wikidata") or None,
            image_url=_image(tags),
            website=tags.get("website") or tags.get("contact:website") or None,
            opening_hours=tags.get("opening_hours") or None,
            heritage_status=_heritage(tags),
            year_established=_year(tags.get("start_date")),
        )
