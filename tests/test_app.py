"""Tests for the FastAPI routes."""

import httpx
import pytest
from fastapi.testclient import TestClient

import app as app_module
from inspections.errors import StoreUnavailable
from inspections.models import EstablishmentIdentity

SPUD = EstablishmentIdentity(program_identifier="SPUD FISH & CHIPS", name="Spud", city="SEATTLE")
DICKS = EstablishmentIdentity(program_identifier="DICK'S DRIVE-IN", name="Dick's", city="EDMONDS")


@pytest.fixture
def api_rows(api_row):
    return {
        "SPUD": [
            api_row("SPUD FISH & CHIPS", "S2", date="2022-06-15", description="Raw meat above produce"),
            api_row("SPUD FISH & CHIPS", "S2", date="2022-06-15", description="No paper towels"),
            api_row("SPUD FISH & CHIPS", "S1", date="2021-01-01"),
        ],
    }


@pytest.fixture
def client(store, make_fetcher, api_rows):
    store.upsert([SPUD, DICKS])

    def handler(request):
        if "DICK''S" in request.url.params["$where"]:
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(200, json=api_rows["SPUD"])

    fetcher = make_fetcher(handler)
    app_module.app.dependency_overrides[app_module.get_store] = lambda: store
    app_module.app.dependency_overrides[app_module.get_fetcher] = lambda: fetcher
    with TestClient(app_module.app) as test_client:
        yield test_client
    app_module.app.dependency_overrides.clear()


def test_startup_populates_store(client):
    assert app_module.store.populated
    identifiers = [e.program_identifier for e in app_module.store.list_all()]
    assert "SPUD FISH & CHIPS" in identifiers


def test_list_establishments(client):
    response = client.get("/api/establishments")

    assert response.status_code == 200
    assert [e["program_identifier"] for e in response.json()] == ["SPUD FISH & CHIPS", "DICK'S DRIVE-IN"]


def test_default_inspections_reports_failures(client):
    response = client.get("/api/default/inspections")

    assert response.status_code == 200
    assert response.headers["X-Fetch-Failures"] == "1"
    body = response.json()
    assert len(body) == 3
    assert [r["id"] for r in body] == [0, 1, 0]


def test_default_inspections_aggregated(client):
    response = client.get("/api/default/inspections/aggregated")

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 2
    assert len(body[0]["violations"]) == 2
    assert body[1]["violations"] == []


def test_default_inspections_latest(client):
    response = client.get("/api/default/inspections/latest")

    body = response.json()
    assert len(body) == 1
    assert body[0]["inspection_date"].startswith("2022-06-15")
    assert [v["description"] for v in body[0]["violations"]] == [
        "Raw meat above produce",
        "No paper towels",
    ]


def test_default_inspections_latest_raw(client):
    body = client.get("/api/default/inspections/latest/raw").json()

    assert len(body) == 2
    assert {r["inspection_serial_num"] for r in body} == {"S2"}


def test_userconfigured_inspections(client):
    response = client.get(
        "/api/userconfigured/inspections",
        params={"name": "SPUD FISH & CHIPS", "city": "SEATTLE", "startdate": "2021-01-01"},
    )

    assert response.status_code == 200
    assert len(response.json()) == 3


def test_userconfigured_failure_is_empty_list(client):
    response = client.get(
        "/api/userconfigured/inspections/aggregated",
        params={"name": "DICK'S DRIVE-IN", "city": "EDMONDS"},
    )

    assert response.status_code == 200
    assert response.json() == []


def test_userconfigured_latest(client):
    body = client.get(
        "/api/userconfigured/inspections/latest",
        params={"name": "SPUD FISH & CHIPS", "city": "SEATTLE"},
    ).json()

    assert len(body) == 1
    assert len(body[0]["violations"]) == 2


def test_userconfigured_latest_raw(client):
    body = client.get(
        "/api/userconfigured/inspections/latest/raw",
        params={"name": "SPUD FISH & CHIPS", "city": "SEATTLE"},
    ).json()

    assert [r["violation_description"] for r in body] == ["Raw meat above produce", "No paper towels"]


def test_store_unavailable_is_503(client, make_fetcher):
    class BrokenStore:
        def list_all(self):
            raise StoreUnavailable("no connection")

    fetcher = make_fetcher(lambda request: httpx.Response(200, json=[]))
    fetcher.store = BrokenStore()
    app_module.app.dependency_overrides[app_module.get_fetcher] = lambda: fetcher
    app_module.app.dependency_overrides[app_module.get_store] = lambda: BrokenStore()

    assert client.get("/api/default/inspections").status_code == 503
    assert client.get("/api/default/inspections/latest").status_code == 503
    assert client.get("/api/establishments").status_code == 503


def test_startdate_must_be_iso_date(client):
    response = client.get(
        "/api/userconfigured/inspections",
        params={"name": "SPUD FISH & CHIPS", "city": "SEATTLE", "startdate": "2020-01-01' OR '1'='1"},
    )

    assert response.status_code == 422


def test_empty_startdate_is_accepted(client):
    response = client.get(
        "/api/userconfigured/inspections/latest",
        params={"name": "SPUD FISH & CHIPS", "city": "SEATTLE", "startdate": ""},
    )

    assert response.status_code == 200


def test_fetcher_is_built_at_startup(client):
    app_module.app.dependency_overrides.pop(app_module.get_fetcher)

    fetcher = app_module.get_fetcher()

    assert fetcher is app_module._fetcher
    assert fetcher.store is app_module.store
    assert app_module.get_fetcher() is fetcher


def test_fetcher_is_closed_at_shutdown():
    with TestClient(app_module.app):
        fetcher = app_module.get_fetcher()
    assert app_module._fetcher is None
    assert fetcher.client.is_closed
