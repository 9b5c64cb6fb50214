from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ...providers.base import ENRICHMENT_FIELDS, POI, Coordinate, POIType, score_fields
from ..geo import distance
from ..similarity import normalize_name, similarity
from ..workflow_types import WorkflowContext

logger = logging.getLogger(__name__)

# Two records farther apart than this are never the same place.
PROXIMITY_THRESHOLD_M = 50.0
# Minimum normalized-Levenshtein name similarity for a duplicate.
NAME_SIMILARITY_THRESHOLD = 0.70


def _anchor_order(poi: POI):
    # richest record first, then most curated source, then id so the outcome
    # does not depend on the order adapters finished in
    return (-poi.notability_score, -poi.priority, poi.id)


def is_duplicate(anchor: POI, candidate: POI) -> bool:
    """Proximity gate first; names are only compared for records within 50m."""
    # "..." or "?" normalize to nothing and would otherwise compare equal
    if not normalize_name(anchor.name) or not normalize_name(candidate.name):
        return False
    d = distance(anchor.latitude, anchor.longitude, candidate.latitude, candidate.longitude)
    if d > PROXIMITY_THRESHOLD_M:
        return False
    return similarity(anchor.name, candidate.name) >= NAME_SIMILARITY_THRESHOLD


def merge_cluster(cluster: Sequence[POI], origin: Optional[Coordinate] = None) -> POI:
    """
    Combine records describing one place. cluster[0] is the anchor.

    - sources: union
    - enrichment fields: value from the highest-priority member that has one,
      first-seen on ties
    - id, name, coordinates: anchor's
    - type: anchor's unless it is OTHER
    - notability: max of member scores and the rescored merged record
    - discovered_at: earliest
    """
    if not cluster:
        raise ValueError("cannot merge an empty cluster")
    anchor = cluster[0]
    if len(cluster) == 1:
        return anchor

    by_priority = sorted(enumerate(cluster), key=lambda t: (-t[1].priority, t[0]))

    fields: Dict[str, Any] = {}
    for name in ENRICHMENT_FIELDS:
        fields[name] = next(
            (getattr(p, name) for _, p in by_priority if getattr(p, name) is not None),
            None,
        )

    poi_type = anchor.type
    if poi_type == POIType.OTHER:
        poi_type = next((p.type for _, p in by_priority if p.type != POIType.OTHER), POIType.OTHER)

    sources = frozenset().union(*(p.sources for p in cluster))
    score = max(max(p.notability_score for p in cluster), score_fields(poi_type, sources, fields))

    if origin is not None:
        dist = distance(origin.lat, origin.lon, anchor.latitude, anchor.longitude)
    else:
        dist = anchor.distance_from_origin

    return POI(
        id=anchor.id,
        name=anchor.name,
        type=poi_type,
        latitude=anchor.latitude,
        longitude=anchor.longitude,
        distance_from_origin=dist,
        sources=sources,
        notability_score=score,
        discovered_at=min(p.discovered_at for p in cluster),
        **fields,
    )


def deduplicate(pois: Sequence[POI], origin: Optional[Coordinate] = None) -> List[POI]:
    """
    Two-phase clustering (50m proximity, then name similarity >= 0.70) followed by
    a merge of each cluster. Idempotent, and the clusters formed do not depend on
    input order. Pass `origin` to recompute distance_from_origin for merged records.
    """
    working = sorted(pois, key=_anchor_order)
    processed = [False] * len(working)
    result: List[POI] = []

    for i, anchor in enumerate(working):
        if processed[i]:
            continue
        processed[i] = True
        cluster = [anchor]

        for j in range(i + 1, len(working)):
            if processed[j]:
                continue
            if is_duplicate(anchor, working[j]):
                cluster.append(working[j])
                processed[j] = True

        if len(cluster) > 1:
            logger.debug(
                "merging %d records into %r (%s)",
                len(cluster), anchor.name, ", ".join(sorted(s.value for p in cluster for s in p.sources)),
            )
        result.append(merge_cluster(cluster, origin))

    return result


class DedupeNode:
    name = "dedupe"

    async def run(self, ctx: WorkflowContext) -> WorkflowContext:
        origin = ctx.plan.origin if ctx.plan is not None else None
        ctx.pois = deduplicate(ctx.raw_pois, origin)
        logger.info("[%s] %d raw POIs -> %d after dedupe", ctx.request_id, len(ctx.raw_pois), len(ctx.pois))
        return ctx
