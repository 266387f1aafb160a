from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.catalog_kinds import CATALOG_KINDS
from app.models import AdditionRequest, CatalogItem, RecencyEntry

MOVIES, TV_SHOWS, GAMES = CATALOG_KINDS


def test_build_item_from_movie_row():
    item = MOVIES.build_item(
        {
            "show_id": "s7",
            "title": "My Little Pony: A New Generation",
            "listed_in": "Children & Family Movies, Comedies",
            "release_year": 2021,
            "liked": True,
        }
    )

    assert item.kind == "movies"
    assert item.key == "s7"
    assert item.liked is True
    assert item.categories == ("Children & Family Movies", "Comedies")
    assert item.field("release_year") == 2021


def test_build_item_from_game_row_uses_integer_key():
    item = GAMES.build_item(
        {"ID": "12", "GameName": "Halo Infinite", "Console": "Xbox Series X, PC"}
    )

    assert item.key == 12
    assert item.title == "Halo Infinite"
    assert item.liked is False
    assert item.categories == ("Xbox Series X", "PC")


def test_build_item_requires_key():
    with pytest.raises(ValueError, match="missing its show_id key"):
        TV_SHOWS.build_item({"title": "Keyless"})


def test_coerce_key_rejects_non_numeric_game_keys():
    assert GAMES.coerce_key("7") == 7
    assert GAMES.coerce_key("seven") is None
    assert GAMES.coerce_key(True) is None
    assert MOVIES.coerce_key(" s1 ") == "s1"
    assert MOVIES.coerce_key("") is None


def test_build_row_keeps_form_fields_and_resets_liked():
    row = MOVIES.build_row(
        {"show_id": "s99", "title": " New Film ", "liked": True, "likes": 5, "director": ""}
    )

    assert row == {"show_id": "s99", "title": "New Film", "liked": False}


def test_build_row_requires_title():
    with pytest.raises(ValueError, match="GameName is required"):
        GAMES.build_row({"Console": "PC"})


def test_with_liked_updates_record():
    item = CatalogItem(kind="movies", key="s1", title="Example", record={"liked": False})

    updated = item.with_liked(True)

    assert updated.liked is True
    assert updated.record["liked"] is True
    assert item.liked is False


def test_display_title_falls_back_to_key():
    item = CatalogItem(kind="video-games", key=3)

    assert item.display_title() == "Untitled #3"
    assert item.to_payload()["title"] == "Untitled #3"


def test_recency_entry_round_trips_through_json():
    timestamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    item = CatalogItem(kind="video-games", key=2, title="Halo Infinite")

    entry = RecencyEntry.from_item(item, timestamp=timestamp)
    payload = entry.model_dump(mode="json")

    assert payload["id"] == 2
    assert payload["kind"] == "video-games"
    assert RecencyEntry.model_validate(payload) == entry


def test_recency_entry_requires_timezone():
    with pytest.raises(ValidationError):
        RecencyEntry(id="s1", kind="movies", timestamp=datetime(2024, 5, 1))


def test_addition_request_normalises_input():
    request = AdditionRequest.model_validate({"q": "  Arrival ", "category": " Movies "})

    assert request.query == "Arrival"
    assert request.kind == "movies"
    assert request.to_row() == {"query": "Arrival", "kind": "movies"}


def test_addition_request_rejects_blank_query():
    with pytest.raises(ValidationError):
        AdditionRequest.model_validate({"query": "   "})
