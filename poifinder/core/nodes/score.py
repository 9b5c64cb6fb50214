from __future__ import annotations

from ..workflow_types import WorkflowContext


class RankPOIsNode:
    """Drops disabled types, then orders by notability (desc) and distance (asc)."""

    name = "rank_pois"

    async def run(self, ctx: WorkflowContext) -> WorkflowContext:
        types = ctx.plan.types if ctx.plan is not None else None
        pois = [p for p in ctx.pois if types is None or p.type in types]
        pois.sort(key=lambda p: (-p.notability_score, p.distance_from_origin, p.id))
        ctx.pois = pois
        return ctx
