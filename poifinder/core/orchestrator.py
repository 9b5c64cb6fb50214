from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import AsyncExitStack
from dataclasses import replace
from typing import Any, Hashable, Iterable, Optional

from ..providers.base import POISource, SourceAdapter
from ..providers.overpass import OverpassConfig, OverpassProvider
from ..providers.wikidata import WikidataConfig, WikidataProvider
from ..providers.wikipedia_geosearch import WikipediaGeosearchConfig, WikipediaGeosearchProvider
from .cache import ResultCache
from .config import Settings, settings as default_settings
from .errors import AllSourcesFailed
from .nodes.dedupe import DedupeNode
from .nodes.discover import DiscoverPOIsNode
from .nodes.planner import RequestPlannerConfig, RequestPlannerNode
from .nodes.score import RankPOIsNode
from .workflow import WorkflowRunner
from .workflow_types import AggregationResult, WorkflowContext

logger = logging.getLogger(__name__)


class POIAggregator:
    """
    Runs discovery across the configured source adapters and owns the result cache.

    One location is "current" at a time: starting a request for a different
    origin/radius/source set cancels the previous in-flight request (unless
    cancel_stale=False), and a result is only cached if its key is still current.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        cache: Optional[ResultCache] = None,
        planner_config: Optional[RequestPlannerConfig] = None,
        *,
        cancel_stale: bool = True,
    ):
        self.adapters = {a.source: a for a in adapters}
        self.cache = cache if cache is not None else ResultCache()
        self.cancel_stale = cancel_stale

        self._planner = RequestPlannerNode(
            planner_config or RequestPlannerConfig(default_sources=frozenset(self.adapters))
        )
        self._runner = WorkflowRunner(
            nodes=[
                DiscoverPOIsNode(self.adapters),
                DedupeNode(),
                RankPOIsNode(),
            ]
        )
        self._current_key: Optional[Hashable] = None
        self._inflight: Optional[asyncio.Task] = None
        self._inflight_key: Optional[Hashable] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    async def __aenter__(self):
        stack = AsyncExitStack()
        for adapter in self.adapters.values():
            if hasattr(adapter, "__aenter__"):
                await stack.enter_async_context(adapter)
        self._exit_stack = stack
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None

    async def clear_cache(self) -> None:
        await self.cache.clear()

    async def discover_pois(
        self,
        origin: Any,
        radius_m: Optional[int] = None,
        enabled_sources: Optional[Iterable[Any]] = None,
        enabled_types: Optional[Iterable[Any]] = None,
        *,
        force_refresh: bool = False,
    ) -> AggregationResult:
        """
        Discover, deduplicate and rank POIs around `origin`.

        Returns an AggregationResult (possibly partial, see `.failures`).
        Raises AllSourcesFailed when every enabled adapter failed,
        InvalidCoordinate for a bad origin and ValueError for unknown sources/types.
        """
        ctx = WorkflowContext(
            request_id=uuid.uuid4().hex[:8],
            request={
                "origin": origin,
                "radius_m": radius_m,
                "sources": list(enabled_sources) if enabled_sources is not None else None,
                "types": list(enabled_types) if enabled_types is not None else None,
            },
        )
        ctx = await self._planner.run(ctx)
        key = ctx.plan.cache_key
        missing = sorted(s.value for s in ctx.plan.sources if s not in self.adapters)
        if missing:
            raise ValueError(f"no adapter configured for sources: {', '.join(missing)}")

        previous, previous_key = self._inflight, self._inflight_key
        self._current_key = key
        if previous is not None and not previous.done() and previous_key != key and self.cancel_stale:
            logger.info("[%s] location changed, cancelling in-flight request", ctx.request_id)
            previous.cancel()

        if not force_refresh:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.info("[%s] cache hit for %s", ctx.request_id, key)
                return replace(cached, from_cache=True)
            if previous is not None and not previous.done() and previous_key == key:
                logger.info("[%s] joining in-flight request for %s", ctx.request_id, key)
                return await asyncio.shield(previous)

        if not ctx.plan.sources:
            return AggregationResult(pois=())

        task = asyncio.ensure_future(self._execute(ctx, key))
        self._inflight, self._inflight_key = task, key
        task.add_done_callback(self._inflight_done)
        # only a location change or aclose() cancels the shared task
        return await asyncio.shield(task)

    def _inflight_done(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight, self._inflight_key = None, None
        if not task.cancelled() and task.exception() is not None:
            # retrieves the exception even when every caller has gone
            logger.debug("in-flight request finished with %r", task.exception())

    async def _execute(self, ctx: WorkflowContext, key: Hashable) -> AggregationResult:
        ctx = await self._runner.run(ctx)

        if not ctx.sources_ok:
            raise AllSourcesFailed(ctx.failures)

        result = ctx.to_result()
        if self._current_key == key:
            await self.cache.put(key, result)
        else:
            logger.info("[%s] discarding stale result for %s", ctx.request_id, key)
        return result


def _sources_from_settings(cfg: Settings) -> frozenset:
    return frozenset(POISource(s) for s in cfg.enabled_sources)


def build_aggregator(cfg: Optional[Settings] = None, **kwargs) -> POIAggregator:
    """Wires the three stock adapters from settings. Use as `async with`."""
    cfg = cfg or default_settings
    enabled = _sources_from_settings(cfg)

    adapters = []
    if POISource.GEOSEARCH in enabled:
        adapters.append(WikipediaGeosearchProvider(WikipediaGeosearchConfig(
            user_agent=cfg.user_agent,
            language_code=cfg.language,
            timeout_s=cfg.geosearch_timeout_s,
        )))
    if POISource.TAG_QUERY in enabled:
        adapters.append(OverpassProvider(OverpassConfig(
            user_agent=cfg.user_agent,
            timeout_s=cfg.tag_query_timeout_s,
            query_timeout_s=int(cfg.tag_query_timeout_s),
            min_request_interval_s=cfg.tag_query_min_interval_s,
        )))
    if POISource.STRUCTURED_DATA in enabled:
        adapters.append(WikidataProvider(WikidataConfig(
            user_agent=cfg.user_agent,
            language_code=cfg.language,
            timeout_s=cfg.structured_timeout_s,
        )))

    planner_config = RequestPlannerConfig(
        default_radius_m=cfg.default_radius_m,
        default_sources=enabled,
    )
    return POIAggregator(adapters, cache=ResultCache(cfg.cache_size), planner_config=planner_config, **kwargs)

