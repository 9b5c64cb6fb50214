from __future__ import annotations

import httpx
import pytest

from conftest import ORIGIN, FakeAdapter, make_poi, north_of
from poifinder.api.app import app
from poifinder.api.routes import get_aggregator
from poifinder.core.errors import AdapterNetworkError, AdapterTimeout
from poifinder.core.orchestrator import POIAggregator
from poifinder.providers.base import POISource

G, T = POISource.GEOSEARCH, POISource.TAG_QUERY


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _install(*adapters):
    aggregator = POIAggregator(adapters)
    app.dependency_overrides[get_aggregator] = lambda: aggregator


def _body(**overrides):
    body = {"latitude": ORIGIN.lat, "longitude": ORIGIN.lon, "radius_m": 1000}
    body.update(overrides)
    return body


async def test_health(client):
    r = await client.get("/v1/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_discover(client):
    _install(
        FakeAdapter(G, [make_poi("Test Landmark", source=G)]),
        FakeAdapter(T, [
            make_poi("Test Landmark ", source=T, lat=north_of(ORIGIN.lat, 10), website="https://landmark.example"),
            make_poi("Fontaine des Innocents", source=T, lat=north_of(ORIGIN.lat, 600)),
        ]),
    )
    r = await client.post("/v1/pois/discover", json=_body())
    assert r.status_code == 200
    data = r.json()
    assert [p["name"] for p in data["pois"]] == ["Test Landmark", "Fontaine des Innocents"]
    assert data["pois"][0]["sources"] == ["geosearch", "tag_query"]
    assert data["pois"][0]["website"] == "https://landmark.example"
    assert data["partial"] is False
    assert data["from_cache"] is False

    again = await client.post("/v1/pois/discover", json=_body())
    assert again.json()["from_cache"] is True


async def test_partial_result_lists_failures(client):
    _install(
        FakeAdapter(G, [make_poi("Pont Neuf", source=G)]),
        FakeAdapter(T, error=AdapterTimeout(T, "no response within 25s")),
    )
    r = await client.post("/v1/pois/discover", json=_body())
    data = r.json()
    assert r.status_code == 200
    assert data["partial"] is True
    assert data["failures"] == [
        {"source": "tag_query", "kind": "AdapterTimeout", "message": "tag_query: no response within 25s"}
    ]


async def test_all_sources_failed_is_bad_gateway(client):
    _install(
        FakeAdapter(G, error=AdapterNetworkError(G, "HTTP 503")),
        FakeAdapter(T, error=AdapterTimeout(T, "slow")),
    )
    r = await client.post("/v1/pois/discover", json=_body())
    assert r.status_code == 502
    failures = r.json()["detail"]["failures"]
    assert {f["source"] for f in failures} == {"geosearch", "tag_query"}


@pytest.mark.parametrize(
    "overrides",
    [
        {"latitude": 91.0},
        {"longitude": -180.5},
        {"radius_m": 0},
        {"sources": ["yellow_pages"]},
        {"types": ["restaurant"]},
    ],
)
async def test_invalid_request(client, overrides):
    _install(FakeAdapter(G))
    r = await client.post("/v1/pois/discover", json=_body(**overrides))
    assert r.status_code == 422


async def test_source_without_adapter_is_bad_request(client):
    _install(FakeAdapter(G))
    r = await client.post("/v1/pois/discover", json=_body(sources=["structured_data"]))
    assert r.status_code == 400


async def test_not_ready_before_startup(client):
    # ASGITransport does not run the lifespan, so no aggregator is built
    r = await client.post("/v1/pois/discover", json=_body())
    assert r.status_code == 503
