"""Pytest configuration and test helpers."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


BACKEND_BASE_URL = "https://backend.example.com/rest/v1"


def _render_filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class FakeTableApi:
    """In-memory stand-in for the PostgREST table API."""

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        *,
        auto_keys: dict[str, str] | None = None,
    ) -> None:
        self.tables = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.auto_keys = dict(auto_keys or {})
        self.requests: list[httpx.Request] = []
        self.fail_methods: set[str] = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method in self.fail_methods:
            return httpx.Response(
                500, json={"message": "simulated outage", "code": "XX000"}
            )

        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.tables.setdefault(table, [])
        filters = {
            key: value[3:]
            for key, value in request.url.params.items()
            if key != "select" and value.startswith("eq.")
        }

        def matches(row: dict[str, Any]) -> bool:
            return all(
                _render_filter_value(row.get(key)) == expected
                for key, expected in filters.items()
            )

        if request.method == "GET":
            return httpx.Response(200, json=[dict(row) for row in rows if matches(row)])
        if request.method == "PATCH":
            changes = json.loads(request.content)
            updated = []
            for row in rows:
                if matches(row):
                    row.update(changes)
                    updated.append(dict(row))
            return httpx.Response(200, json=updated)
        if request.method == "POST":
            payload = json.loads(request.content)
            stored_rows = []
            for entry in payload:
                stored = dict(entry)
                key_field = self.auto_keys.get(table)
                if key_field and key_field not in stored:
                    stored[key_field] = (
                        max((int(row.get(key_field) or 0) for row in rows), default=0) + 1
                    )
                rows.append(stored)
                stored_rows.append(dict(stored))
            return httpx.Response(201, json=stored_rows)
        return httpx.Response(405, json={"message": "method not allowed"})


def sample_tables() -> dict[str, list[dict[str, Any]]]:
    """Return a small catalog covering every kind."""

    return {
        "Movies_List": [
            {
                "show_id": "s1",
                "type": "Movie",
                "title": "Dick Johnson Is Dead",
                "director": "Kirsten Johnson",
                "release_year": 2020,
                "listed_in": "Documentaries",
                "description": "A filmmaker stages her father's death.",
                "liked": False,
            },
            {
                "show_id": "s7",
                "type": "Movie",
                "title": "My Little Pony: A New Generation",
                "director": "Robert Cullen",
                "release_year": 2021,
                "listed_in": "Children & Family Movies, Comedies",
                "description": "Equestria's divided.",
                "liked": True,
            },
            {
                "show_id": "s10",
                "type": "Movie",
                "title": "The Starling",
                "director": "Theodore Melfi",
                "release_year": 2021,
                "listed_in": "Comedies, Dramas",
                "description": "A woman adjusting to life after a loss.",
                "liked": False,
            },
        ],
        "TV_Shows": [
            {
                "show_id": "s2",
                "type": "TV Show",
                "title": "Blood & Water",
                "release_year": 2021,
                "listed_in": "International TV Shows, TV Dramas, TV Mysteries",
                "description": "After crossing paths at a party...",
                "liked": False,
            },
        ],
        "Video_Game": [
            {
                "ID": 1,
                "GameName": "The Legend of Zelda: Breath of the Wild",
                "Console": "Switch",
                "Review": "Masterpiece",
                "Score": 10,
                "liked": True,
            },
            {
                "ID": 2,
                "GameName": "Halo Infinite",
                "Console": "Xbox Series X, PC",
                "Review": "Solid return",
                "Score": 8,
                "liked": False,
            },
        ],
        "requests": [],
    }


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def table_api() -> FakeTableApi:
    return FakeTableApi(sample_tables(), auto_keys={"Video_Game": "ID"})
