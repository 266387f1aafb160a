"""Pydantic models describing catalog items and local client state."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CatalogItem(BaseModel):
    """A single movie, TV show or game row held in a view snapshot."""

    model_config = ConfigDict(frozen=True)

    kind: str
    key: str | int
    title: str = ""
    liked: bool = False
    categories: tuple[str, ...] = ()
    record: dict[str, Any] = Field(default_factory=dict)

    def display_title(self) -> str:
        """Return a human-friendly title for cards and headings."""

        title = (self.title or "").strip()
        if title:
            return title
        return f"Untitled #{self.key}"

    def with_liked(self, liked: bool) -> "CatalogItem":
        """Return a copy carrying the given ``liked`` flag."""

        return self.model_copy(
            update={"liked": liked, "record": {**self.record, "liked": liked}}
        )

    def field(self, name: str) -> Any:
        return self.record.get(name)

    def to_payload(self) -> dict[str, object]:
        """Return the JSON payload exposed by the API."""

        return {
            "kind": self.kind,
            "key": self.key,
            "title": self.display_title(),
            "liked": self.liked,
            "categories": list(self.categories),
            "record": self.record,
        }


class RecencyEntry(BaseModel):
    """An item the user opened recently."""

    id: str | int
    kind: str
    title: str = ""
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return value

    @property
    def identity(self) -> tuple[str, str]:
        return str(self.id), self.kind

    @classmethod
    def from_item(cls, item: CatalogItem, *, timestamp: datetime) -> "RecencyEntry":
        return cls(
            id=item.key,
            kind=item.kind,
            title=item.display_title(),
            timestamp=timestamp,
        )


class AdditionRequest(BaseModel):
    """Free-text request for a title that is missing from a catalog."""

    query: str = Field(
        min_length=1,
        max_length=500,
        validation_alias=AliasChoices("query", "title", "q"),
    )
    kind: str | None = Field(
        default=None, validation_alias=AliasChoices("kind", "category")
    )

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip().lower()
            return cleaned or None
        return value

    def to_row(self) -> dict[str, object]:
        return {"query": self.query, "kind": self.kind}
