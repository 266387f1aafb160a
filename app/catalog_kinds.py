"""Catalog kind descriptors for the movie, TV show and game tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from .models import CatalogItem
from .utils import split_categories


KindSlug = Literal["movies", "tv-shows", "video-games"]


@dataclass(frozen=True)
class CatalogKind:
    """Describes how one backend table maps onto a browsable catalog."""

    slug: KindSlug
    label: str
    singular: str
    table: str
    key_field: str
    key_type: type
    title_field: str
    category_field: str
    category_label: str
    summary_fields: tuple[tuple[str, str], ...]
    detail_fields: tuple[tuple[str, str], ...]
    form_fields: tuple[str, ...]

    def coerce_key(self, raw: object) -> str | int | None:
        """Return ``raw`` converted to the key type of this table."""

        if raw is None:
            return None
        if self.key_type is int:
            if isinstance(raw, bool):
                return None
            try:
                return int(str(raw).strip())
            except ValueError:
                return None
        value = str(raw).strip()
        return value or None

    def build_item(self, row: dict[str, Any]) -> CatalogItem:
        """Wrap a backend row into a :class:`CatalogItem`."""

        key = self.coerce_key(row.get(self.key_field))
        if key is None:
            raise ValueError(f"{self.table} row is missing its {self.key_field} key")
        title = str(row.get(self.title_field) or "").strip()
        return CatalogItem(
            kind=self.slug,
            key=key,
            title=title,
            liked=bool(row.get("liked")),
            categories=split_categories(row.get(self.category_field)),
            record=dict(row),
        )

    def build_row(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Return an insertable row restricted to the form fields."""

        row: dict[str, Any] = {}
        for name in self.form_fields:
            value = fields.get(name)
            if isinstance(value, str):
                value = value.strip()
            if value is None or value == "":
                continue
            row[name] = value
        if not str(row.get(self.title_field) or "").strip():
            raise ValueError(f"{self.singular} {self.title_field} is required")
        row["liked"] = False
        return row


_SHOW_DETAIL_FIELDS: tuple[tuple[str, str], ...] = (
    ("type", "Type"),
    ("director", "Director"),
    ("cast", "Cast"),
    ("country", "Country"),
    ("release_year", "Release Year"),
    ("rating", "Rating"),
    ("duration", "Duration"),
    ("listed_in", "Genre"),
    ("description", "Description"),
)

_SHOW_FORM_FIELDS: tuple[str, ...] = (
    "show_id",
    "title",
    "type",
    "director",
    "cast",
    "country",
    "release_year",
    "rating",
    "duration",
    "listed_in",
    "description",
)


def build_catalog_kinds(
    *,
    movies_table: str = "Movies_List",
    tv_shows_table: str = "TV_Shows",
    games_table: str = "Video_Game",
) -> tuple[CatalogKind, ...]:
    """Return the catalog kinds bound to the configured table names."""

    return (
        CatalogKind(
            slug="movies",
            label="Movies",
            singular="Movie",
            table=movies_table,
            key_field="show_id",
            key_type=str,
            title_field="title",
            category_field="listed_in",
            category_label="Genre",
            summary_fields=(("release_year", "Release Year"),),
            detail_fields=_SHOW_DETAIL_FIELDS,
            form_fields=_SHOW_FORM_FIELDS,
        ),
        CatalogKind(
            slug="tv-shows",
            label="TV Shows",
            singular="TV Show",
            table=tv_shows_table,
            key_field="show_id",
            key_type=str,
            title_field="title",
            category_field="listed_in",
            category_label="Genre",
            summary_fields=(("release_year", "Release Year"),),
            detail_fields=_SHOW_DETAIL_FIELDS,
            form_fields=_SHOW_FORM_FIELDS,
        ),
        CatalogKind(
            slug="video-games",
            label="Video Games",
            singular="Video Game",
            table=games_table,
            key_field="ID",
            key_type=int,
            title_field="GameName",
            category_field="Console",
            category_label="Console",
            summary_fields=(("Console", "Console"), ("Score", "Score")),
            detail_fields=(
                ("Console", "Console"),
                ("Score", "Score"),
                ("Review", "Review"),
            ),
            form_fields=("GameName", "Console", "Review", "Score"),
        ),
    )


CATALOG_KINDS: tuple[CatalogKind, ...] = build_catalog_kinds()
KIND_SLUGS: tuple[str, ...] = tuple(kind.slug for kind in CATALOG_KINDS)
