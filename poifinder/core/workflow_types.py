from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from ..providers.base import POI, Coordinate, POISource, POIType

# Origin rounding for cache keys: 4 decimals is ~11m.
CACHE_KEY_PRECISION = 4


@dataclass(frozen=True)
class DiscoveryPlan:
    origin: Coordinate
    radius_m: int
    sources: FrozenSet[POISource]
    types: FrozenSet[POIType]

    @property
    def cache_key(self) -> Tuple[Any, ...]:
        return (
            round(self.origin.lat, CACHE_KEY_PRECISION),
            round(self.origin.lon, CACHE_KEY_PRECISION),
            self.radius_m,
            ",".join(sorted(s.value for s in self.sources)),
            ",".join(sorted(t.value for t in self.types)),
        )


@dataclass(frozen=True)
class SourceFailure:
    source: POISource
    error: Exception

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source.value, "kind": self.kind, "message": str(self.error)}


@dataclass(frozen=True)
class AggregationResult:
    """Final ranked POIs plus per-source diagnostics. Immutable so it can be cached as-is."""
    pois: Tuple[POI, ...]
    failures: Tuple[SourceFailure, ...] = ()
    sources_ok: FrozenSet[POISource] = frozenset()
    from_cache: bool = False

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)


@dataclass
class WorkflowContext:
    request_id: str
    request: Dict[str, Any]

    plan: Optional[DiscoveryPlan] = None
    raw_pois: List[POI] = field(default_factory=list)
    pois: List[POI] = field(default_factory=list)

    sources_ok: Set[POISource] = field(default_factory=set)
    failures: List[SourceFailure] = field(default_factory=list)

    def to_result(self) -> AggregationResult:
        return AggregationResult(
            pois=tuple(self.pois),
            failures=tuple(self.failures),
            sources_ok=frozenset(self.sources_ok),
        )
