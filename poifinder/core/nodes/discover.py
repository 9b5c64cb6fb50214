from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from ...providers.base import POI, POISource, SourceAdapter
from ..errors import AdapterError, AdapterTimeout
from ..workflow_types import DiscoveryPlan, SourceFailure, WorkflowContext

logger = logging.getLogger(__name__)

DEFAULT_ADAPTER_TIMEOUT_S = 30.0

_Outcome = Tuple[POISource, Optional[List[POI]], Optional[Exception]]


class DiscoverPOIsNode:
    """
    Fans out to every enabled adapter at once and waits for all of them to settle.
    A failing or timed-out adapter is recorded in ctx.failures; it never fails the node.
    """

    name = "discover_pois"

    def __init__(self, adapters: Mapping[POISource, SourceAdapter]):
        self.adapters: Dict[POISource, SourceAdapter] = dict(adapters)

    async def _fetch_one(self, source: POISource, adapter: SourceAdapter, plan: DiscoveryPlan) -> _Outcome:
        timeout = getattr(adapter, "timeout_s", None) or DEFAULT_ADAPTER_TIMEOUT_S
        try:
            pois = await asyncio.wait_for(adapter.fetch_nearby(plan.origin, plan.radius_m), timeout=timeout)
            return source, list(pois), None
        except asyncio.TimeoutError:
            return source, None, AdapterTimeout(source, f"no response within {timeout}s")
        except AdapterError as e:
            return source, None, e
        except Exception as e:
            logger.exception("Unexpected error from %s adapter", source.value)
            return source, None, e

    async def run(self, ctx: WorkflowContext) -> WorkflowContext:
        plan = ctx.plan
        if plan is None:
            raise RuntimeError("DiscoverPOIsNode requires a plan; run RequestPlannerNode first")

        missing = sorted(s.value for s in plan.sources if s not in self.adapters)
        if missing:
            raise ValueError(f"no adapter configured for sources: {', '.join(missing)}")

        enabled = [s for s in POISource if s in plan.sources]
        outcomes = await asyncio.gather(*(self._fetch_one(s, self.adapters[s], plan) for s in enabled))

        raw: List[POI] = []
        for source, pois, error in outcomes:
            if error is not None:
                logger.warning("[%s] source %s failed: %s", ctx.request_id, source.value, error)
                ctx.failures.append(SourceFailure(source=source, error=error))
                continue
            logger.info("[%s] source %s returned %d POIs", ctx.request_id, source.value, len(pois))
            ctx.sources_ok.add(source)
            raw.extend(pois)

        ctx.raw_pois = raw
        return ctx
