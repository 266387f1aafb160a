from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import Database
from app.local_store import LocalStore
from app.main import register_routes
from app.services.backend import BackendClient
from app.services.catalog import CatalogService

BASE_URL = "https://backend.example.com/rest/v1"


def build_app(tmp_path, table_api, **overrides) -> FastAPI:
    """Return an app wired to the fake table API and a temporary database."""

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'routes.db'}")
        await database.create_all()
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(table_api), base_url=BASE_URL
        ) as http_client:
            settings = Settings(_env_file=None, **overrides)
            service = CatalogService(
                settings,
                BackendClient(settings, http_client),
                LocalStore(database.session_factory),
            )
            fastapi_app.state.catalog_service = service
            yield
            service.close()
        await database.dispose()

    app = FastAPI(lifespan=lifespan)
    register_routes(app)
    return app


def test_healthcheck(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_catalog_page_lists_filtered_items(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        response = client.get("/movies", params={"category": "Comedies"})

    assert response.status_code == 200
    assert "The Starling" in response.text
    assert "My Little Pony" in response.text
    assert "Dick Johnson Is Dead" not in response.text


def test_catalog_page_offers_request_for_unmet_query(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        response = client.get("/tv-shows", params={"q": "Severance"})

    assert response.status_code == 200
    assert 'id="request-title"' in response.text
    assert "Severance" in response.text


def test_catalog_page_requires_query_when_configured(tmp_path, table_api) -> None:
    app = build_app(tmp_path, table_api, REQUIRE_QUERY_KINDS="video-games")
    with TestClient(app) as client:
        response = client.get("/video-games")

    assert response.status_code == 200
    assert "Halo Infinite" not in response.text
    assert "Type a title to search" in response.text


def test_backend_failure_renders_full_page_error(tmp_path, table_api) -> None:
    table_api.fail_methods.add("GET")
    with TestClient(build_app(tmp_path, table_api)) as client:
        catalog = client.get("/movies")
        home = client.get("/")

    assert catalog.status_code == 502
    assert "Error: simulated outage" in catalog.text
    assert home.status_code == 502
    assert "Error: simulated outage" in home.text


def test_unknown_catalog_returns_404(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        response = client.get("/podcasts")
        api_response = client.get("/api/podcasts")

    assert response.status_code == 404
    assert api_response.status_code == 404


def test_opening_items_updates_recent_list_and_dashboard(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        for path in ("/movies/s1", "/video-games/2", "/movies/s10", "/movies/s1"):
            assert client.get(path).status_code == 200
        missing = client.get("/movies/s404")
        recent = client.get("/api/recent").json()
        home = client.get("/")

    assert missing.status_code == 404
    assert [(entry["id"], entry["kind"]) for entry in recent] == [
        ("s1", "movies"),
        ("s10", "movies"),
        (2, "video-games"),
    ]
    assert "Recently Viewed" in home.text
    assert "Halo Infinite" in home.text


def test_like_toggle_round_trip(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        first = client.post("/api/movies/s1/like")
        liked = client.get("/api/movies", params={"liked": "true"}).json()
        second = client.post("/api/movies/s1/like")
        missing = client.post("/api/movies/s404/like")

    assert first.status_code == 200
    assert first.json()["liked"] is True
    assert sorted(item["key"] for item in liked) == ["s1", "s7"]
    assert second.json()["liked"] is False
    assert missing.status_code == 404
    assert table_api.tables["Movies_List"][0]["liked"] is False


def test_like_toggle_reports_backend_rejection(tmp_path, table_api) -> None:
    table_api.fail_methods.add("PATCH")
    with TestClient(build_app(tmp_path, table_api)) as client:
        response = client.post("/api/video-games/1/like")
        games = client.get("/api/video-games").json()

    assert response.status_code == 502
    assert {item["key"]: item["liked"] for item in games}[1] is True


def test_add_item_endpoint(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        created = client.post(
            "/api/movies",
            json={"show_id": "s99", "title": "Arrival", "listed_in": "Sci-Fi"},
        )
        invalid = client.post("/api/movies", json={"director": "Nobody"})
        malformed = client.post("/api/movies", json=["not", "an", "object"])

    assert created.status_code == 201
    assert created.json()["key"] == "s99"
    assert created.json()["categories"] == ["Sci-Fi"]
    assert invalid.status_code == 400
    assert malformed.status_code == 400


def test_submit_request_endpoint(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        accepted = client.post("/api/requests", json={"query": "Severance", "kind": "tv-shows"})
        blank = client.post("/api/requests", json={"query": "  "})
        unknown = client.post("/api/requests", json={"query": "Serial", "kind": "podcasts"})
        table_api.fail_methods.add("POST")
        failed = client.post("/api/requests", json={"query": "Dune"})

    assert accepted.json() == {"submitted": True}
    assert table_api.tables["requests"] == [{"query": "Severance", "kind": "tv-shows"}]
    assert blank.status_code == 400
    assert unknown.status_code == 400
    assert failed.status_code == 200
    assert failed.json() == {"submitted": False}


def test_welcome_notice_until_dismissed(tmp_path, table_api) -> None:
    with TestClient(build_app(tmp_path, table_api)) as client:
        before = client.get("/")
        dismissed = client.post("/api/welcome/dismiss")
        after = client.get("/")

    assert 'id="welcome"' in before.text
    assert dismissed.json() == {"hasSeenWelcome": True}
    assert 'id="welcome"' not in after.text


def test_undecodable_json_body_is_rejected(tmp_path, table_api) -> None:
    body = b'{"query": "\xff\xfe"}'
    headers = {"content-type": "application/json"}
    with TestClient(build_app(tmp_path, table_api)) as client:
        request_response = client.post("/api/requests", content=body, headers=headers)
        add_response = client.post("/api/movies", content=body, headers=headers)
        empty_response = client.post("/api/requests", content=b"", headers=headers)

    assert request_response.status_code == 400
    assert add_response.status_code == 400
    assert empty_response.status_code == 400
    assert table_api.tables["requests"] == []
