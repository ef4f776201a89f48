"""Tests for the flows router — GET /api/v1/sankey."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from flowspine.api.app import create_app
from flowspine.api.settings import FlowSpineAPISettings
from flowspine.core.cache import InMemoryCache
from flowspine.core.store import SqlAlchemyStore
from flowspine.flow.columns import ORDERFLOW_COLUMNS
from tests._support import FakeStore, seed_flow_table

RECORDS = [
    {"frontend": "Uniswap", "solver": "s1", "builder": "b1", "total_volume": 10.0},
    {"frontend": "1inch", "solver": "s2", "builder": "b1", "total_volume": 4.0},
    {"frontend": "Uniswap", "metaaggregator": "m1", "solver": "s1", "builder": "b2", "total_volume": 6.0},
]


class TrackingCache(InMemoryCache):
    def __init__(self):
        super().__init__()
        self.closed = 0

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def api_settings(sqlite_url) -> FlowSpineAPISettings:
    return FlowSpineAPISettings(
        _env_file=None,
        database_url=sqlite_url,
        orderflow_table="prodof_aggregated",
        liquidity_table="prodlq_aggregated",
        fetch_retry_delay_seconds=0,
    )


@pytest.fixture
def tracking_cache(monkeypatch) -> TrackingCache:
    cache = TrackingCache()
    monkeypatch.setattr("flowspine.api.deps.create_cache", lambda url: cache)
    return cache


@pytest.fixture
def client(api_settings, tracking_cache):
    seed_flow_table(api_settings.database_url, api_settings.orderflow_table, ORDERFLOW_COLUMNS, RECORDS)
    store = SqlAlchemyStore(api_settings.database_url)
    app = create_app(settings=api_settings, store=store)
    yield TestClient(app)
    store.close()


class TestSankey:
    def test_orderflow_graph(self, client):
        resp = client.get("/api/v1/sankey", params={"isOrderflow": "true"})
        assert resp.status_code == 200
        body = resp.json()
        assert set(body) == {"data", "elapsed_ms", "warnings"}
        data = body["data"]
        assert set(data) == {"entityFilter", "links", "labels", "colors", "xPositions", "range"}
        assert data["labels"] == ["Uniswap", "1inch", "m1", "s1", "s2", "b1", "b2"]
        assert sum(data["links"]["value"]) == 46.0
        assert data["range"] is None
        assert body["warnings"] == []

    def test_repeated_and_comma_values(self, client):
        a = client.get("/api/v1/sankey?isOrderflow=true&frontend=Uniswap&frontend=1inch").json()
        b = client.get("/api/v1/sankey?isOrderflow=true&frontend=Uniswap,1inch").json()
        expected = "((frontend = 'Uniswap' OR frontend = '1inch'))"
        assert a["data"]["entityFilter"] == expected
        assert b["data"]["entityFilter"] == expected

    def test_meta_aggregator_alias(self, client):
        body = client.get("/api/v1/sankey?isOrderflow=true&metaAggregator=m1").json()
        assert body["data"]["entityFilter"] == "((metaaggregator = 'm1'))"
        assert sum(body["data"]["links"]["value"]) == 18.0

    def test_exclude_columns(self, client):
        body = client.get("/api/v1/sankey?isOrderflow=true&columns=metaaggregator,mempool&columns=ofa").json()
        assert "m1" not in body["data"]["labels"]
        assert body["data"]["xPositions"][0] == pytest.approx(1 / 6)

    def test_unknown_column_is_400(self, client):
        resp = client.get("/api/v1/sankey?isOrderflow=true&columns=pool")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Unknown column(s) for orderflow: pool"}

    def test_excluding_everything_is_400(self, client):
        resp = client.get(
            "/api/v1/sankey", params={"isOrderflow": "true", "columns": ",".join(ORDERFLOW_COLUMNS)}
        )
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_liquidity_mode_degrades_when_table_missing(self, client):
        """Liquidity table was never created: every query is unavailable."""
        resp = client.get("/api/v1/sankey")
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"]["labels"] == []
        assert len(body["warnings"]) == 21

    def test_cache_released_every_request(self, client, tracking_cache):
        client.get("/api/v1/sankey?isOrderflow=true")
        client.get("/api/v1/sankey?isOrderflow=true&columns=pool")
        assert tracking_cache.closed == 2

    def test_second_request_served_from_cache(self, client, tracking_cache):
        first = client.get("/api/v1/sankey?isOrderflow=true").json()
        cached = tracking_cache.size()
        second = client.get("/api/v1/sankey?isOrderflow=true").json()
        assert cached == 21
        assert tracking_cache.size() == cached
        assert first["data"] == second["data"]


class TestSankeyFailures:
    def test_unexpected_error_is_generic(self, client, monkeypatch):
        async def boom(self, request):
            raise RuntimeError("secret internals")

        monkeypatch.setattr("flowspine.api.routers.flows.FlowGraphBuilder.build", boom)
        resp = client.get("/api/v1/sankey?isOrderflow=true")
        assert resp.status_code == 400
        assert resp.json() == {"error": "An unexpected error occurred."}

    def test_unexpected_error_detail_in_debug(self, api_settings, tracking_cache, monkeypatch):
        async def boom(self, request):
            raise RuntimeError("secret internals")

        monkeypatch.setattr("flowspine.api.routers.flows.FlowGraphBuilder.build", boom)
        debug = api_settings.model_copy(update={"debug": True})
        client = TestClient(create_app(settings=debug, store=FakeStore()))
        assert client.get("/api/v1/sankey").json() == {"error": "secret internals"}

    def test_deadline_is_400(self, api_settings, tracking_cache):
        def slow(sql, params):
            time.sleep(0.3)
            return []

        fast = api_settings.model_copy(update={"request_timeout_seconds": 0.05})
        client = TestClient(create_app(settings=fast, store=FakeStore(slow)))
        resp = client.get("/api/v1/sankey")
        assert resp.status_code == 400
        assert "timed out" in resp.json()["error"]
        assert tracking_cache.closed == 1
