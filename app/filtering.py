"""Search and category helpers shared by every catalog view."""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import CatalogItem


def filter_items(
    items: Sequence[CatalogItem],
    query: str | None,
    *,
    category: str | None = None,
    liked_only: bool = False,
    require_query: bool = False,
) -> list[CatalogItem]:
    """Return the items matching the search query, category and liked flag.

    Titles are matched as case-insensitive substrings. When ``require_query``
    is set an empty query yields no results instead of the whole list.
    """

    needle = (query or "").strip().casefold()
    if not needle and require_query:
        return []

    wanted_category = (category or "").strip().casefold()

    results: list[CatalogItem] = []
    for item in items:
        if liked_only and not item.liked:
            continue
        if needle and needle not in (item.title or "").casefold():
            continue
        if wanted_category and not any(
            token.casefold() == wanted_category for token in item.categories
        ):
            continue
        results.append(item)
    return results


def extract_categories(items: Iterable[CatalogItem]) -> list[str]:
    """Return the distinct category tokens across ``items``."""

    seen: dict[str, str] = {}
    for item in items:
        for token in item.categories:
            cleaned = token.strip()
            if not cleaned:
                continue
            seen.setdefault(cleaned.casefold(), cleaned)
    return list(seen.values())


def group_categories(categories: Iterable[str]) -> dict[str, list[str]]:
    """Group category tokens by their uppercase first letter."""

    groups: dict[str, list[str]] = {}
    for token in categories:
        cleaned = token.strip()
        if not cleaned:
            continue
        groups.setdefault(cleaned[0].upper(), []).append(cleaned)

    return {
        letter: sorted(set(groups[letter]), key=lambda value: (value.casefold(), value))
        for letter in sorted(groups)
    }
