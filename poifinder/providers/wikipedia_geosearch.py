# poifinder/providers/wikipedia_geosearch.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..core.errors import AdapterNetworkError, AdapterParseError, InvalidCoordinate
from .base import POI, Coordinate, POISource, POIType
from .http import HttpSourceConfig, JsonHttpSource, _safe_float, _safe_get

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WikipediaGeosearchConfig(HttpSourceConfig):
    # e.g. "en", "de"; selects the wiki host
    language_code: str = "en"
    timeout_s: float = 15.0
    result_limit: int = 50
    # the geosearch API rejects radii above 10km
    max_radius_m: int = 10_000
    namespace: int = 0


class WikipediaGeosearchProvider(JsonHttpSource):
    """
    Articles-by-coordinate lookup:
      - GET https://{lang}.wikipedia.org/w/api.php?action=query&list=geosearch

    Each geotagged main-namespace article becomes one POI. Curated encyclopedia
    entries carry the Geosearch base notability.
    """

    source = POISource.GEOSEARCH

    def __init__(self, cfg: Optional[WikipediaGeosearchConfig] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(cfg or WikipediaGeosearchConfig(), client)

    @property
    def endpoint(self) -> str:
        return f"https://{self.cfg.language_code}.wikipedia.org/w/api.php"

    def _params(self, origin: Coordinate, radius_m: int) -> Dict[str, Any]:
        radius = max(10, min(int(radius_m), self.cfg.max_radius_m))
        return {
            "action": "query",
            "list": "geosearch",
            "gscoord": f"{origin.lat}|{origin.lon}",
            "gsradius": str(radius),
            "gslimit": str(self.cfg.result_limit),
            "gsnamespace": str(self.cfg.namespace),
            "format": "json",
        }

    async def fetch_nearby(self, origin: Coordinate, radius_m: int = 10_000) -> List[POI]:
        data = await self._request_json("GET", self.endpoint, params=self._params(origin, radius_m))

        if "error" in data:
            err = data.get("error")
            info = (err.get("info") or err.get("code")) if isinstance(err, dict) else err
            raise AdapterNetworkError(self.source, f"API error: {info}")

        items = _safe_get(data, ["query", "geosearch"])
        if items is None:
            return []
        if not isinstance(items, list):
            raise AdapterParseError(self.source, "query.geosearch is not a list")

        pois: List[POI] = []
        for item in items:
            try:
                poi = self._parse_item(item, origin)
            except (AdapterParseError, InvalidCoordinate, ValueError) as e:
                logger.warning("Skipping malformed geosearch entry %r: %s", item, e)
                continue
            if poi is not None:
                pois.append(poi)

        logger.debug("geosearch returned %d/%d usable entries", len(pois), len(items))
        return pois

    def _parse_item(self, item: Any, origin: Coordinate) -> Optional[POI]:
        if not isinstance(item, dict):
            raise AdapterParseError(self.source, "entry is not an object")

        ns = item.get("ns", self.cfg.namespace)
        if ns != self.cfg.namespace:
            return None

        title = item.get("title")
        lat = _safe_float(item.get("lat"))
        lon = _safe_float(item.get("lon"))
        if not isinstance(title, str) or not title.strip():
            raise AdapterParseError(self.source, "missing title")
        if lat is None or lon is None:
            raise AdapterParseError(self.source, "missing coordinates")

        return POI.create(
            name=title.strip(),
            type=POIType.TOURIST_ATTRACTION,
            latitude=lat,
            longitude=lon,
            origin=origin,
            sources=[self.source],
            distance_from_origin=_safe_float(item.get("dist")),
            wikipedia_title=title.strip(),
        )
