from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional

from ...providers.base import Coordinate, POISource, POIType
from ..workflow_types import DiscoveryPlan, WorkflowContext


@dataclass(frozen=True)
class RequestPlannerConfig:
    default_radius_m: int = 5000
    min_radius_m: int = 10
    max_radius_m: int = 50_000
    default_sources: FrozenSet[POISource] = field(default_factory=lambda: frozenset(POISource))


def _coerce_sources(values: Optional[Iterable[Any]], default: FrozenSet[POISource]) -> FrozenSet[POISource]:
    if values is None:
        return default
    # ValueError for an unknown source name
    return frozenset(POISource(v) for v in values)


def _coerce_types(values: Optional[Iterable[Any]]) -> FrozenSet[POIType]:
    if values is None:
        return frozenset(POIType)
    return frozenset(POIType(v) for v in values)


class RequestPlannerNode:
    """Turns the raw request dict into a validated DiscoveryPlan."""

    name = "request_planner"

    def __init__(self, config: RequestPlannerConfig | None = None):
        self.config = config or RequestPlannerConfig()

    def plan(self, req: dict) -> DiscoveryPlan:
        origin = req["origin"]
        if not isinstance(origin, Coordinate):
            lat, lon = origin
            origin = Coordinate(float(lat), float(lon))

        radius = req.get("radius_m")
        radius = int(radius) if radius is not None else self.config.default_radius_m
        if radius <= 0:
            raise ValueError(f"radius_m must be positive, got {radius}")
        radius = max(self.config.min_radius_m, min(radius, self.config.max_radius_m))

        return DiscoveryPlan(
            origin=origin,
            radius_m=radius,
            sources=_coerce_sources(req.get("sources"), self.config.default_sources),
            types=_coerce_types(req.get("types")),
        )

    async def run(self, ctx: WorkflowContext) -> WorkflowContext:
        ctx.plan = self.plan(ctx.request)
        return ctx
