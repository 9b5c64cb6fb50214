from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import httpx
import pytest

from poifinder.providers.base import POI, Coordinate, POISource, POIType

ORIGIN = Coordinate(48.8566, 2.3522)

METERS_PER_DEGREE_LAT = 111_195.0


def north_of(lat: float, meters: float) -> float:
    return lat + meters / METERS_PER_DEGREE_LAT


def make_poi(
    name: str,
    source: POISource = POISource.TAG_QUERY,
    lat: float = ORIGIN.lat,
    lon: float = ORIGIN.lon,
    type: POIType = POIType.TOURIST_ATTRACTION,
    **fields,
) -> POI:
    return POI.create(
        name=name,
        type=type,
        latitude=lat,
        longitude=lon,
        origin=ORIGIN,
        sources=[source],
        **fields,
    )


class FakeAdapter:
    """In-memory SourceAdapter; optionally slow or failing."""

    def __init__(
        self,
        source: POISource,
        pois: Optional[List[POI]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        timeout_s: float = 5.0,
        gate: Optional[Callable[[Coordinate], Optional[asyncio.Event]]] = None,
    ):
        self.source = source
        self.pois = pois or []
        self.error = error
        self.delay = delay
        self.timeout_s = timeout_s
        self.gate = gate
        self.calls: List[Coordinate] = []

    async def fetch_nearby(self, origin: Coordinate, radius_m: int) -> List[POI]:
        self.calls.append(origin)
        if self.gate is not None:
            event = self.gate(origin)
            if event is not None:
                await event.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.pois)


class FakeClock:
    """Deterministic clock + sleep pair for RateLimiter tests."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def origin() -> Coordinate:
    return ORIGIN


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def mock_client():
    """Factory: build an httpx.AsyncClient answering through `handler`."""
    clients: List[httpx.AsyncClient] = []

    def _make(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()
