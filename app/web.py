"""HTML page rendering for the catalog browser."""

from __future__ import annotations

import json
from html import escape
from textwrap import dedent
from typing import Iterable, Mapping
from urllib.parse import quote, urlencode

from .catalog_kinds import CatalogKind
from .config import Settings
from .models import CatalogItem, RecencyEntry


PAGE_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__TITLE__ · __APP_NAME__</title>
    <style>
        :root {
            font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
            --surface: #ffffff;
            --surface-muted: #f3f4f6;
            --text-primary: #111827;
            --text-muted: #4b5563;
            --outline: #d1d5db;
            --accent: #3b82f6;
            --liked: #ef4444;
            background: var(--surface-muted);
            color: var(--text-primary);
        }
        * {
            box-sizing: border-box;
        }
        body {
            margin: 0;
            min-height: 100vh;
        }
        header.site {
            position: sticky;
            top: 0;
            display: flex;
            align-items: center;
            justify-content: space-between;
            padding: 1rem 2rem;
            background: linear-gradient(135deg, #bfdbfe, #e9d5ff);
        }
        header.site a {
            color: inherit;
            text-decoration: none;
            margin-left: 1.5rem;
            font-weight: 500;
        }
        header.site .brand {
            margin-left: 0;
            font-size: 1.5rem;
            font-weight: 700;
        }
        main {
            max-width: 1120px;
            margin: 0 auto;
            padding: 2rem 1.5rem 4rem;
        }
        .grid {
            display: grid;
            gap: 1.5rem;
            grid-template-columns: repeat(auto-fill, minmax(280px, 1fr));
        }
        .card {
            position: relative;
            background: var(--surface);
            border-radius: 12px;
            padding: 1.5rem;
            box-shadow: 0 4px 12px rgba(0, 0, 0, 0.08);
        }
        .card h3 a {
            color: inherit;
            text-decoration: none;
        }
        .card p {
            margin: 0.25rem 0;
            color: var(--text-muted);
        }
        .like {
            position: absolute;
            right: 1rem;
            bottom: 1rem;
            border: none;
            background: none;
            font-size: 1.5rem;
            cursor: pointer;
            color: var(--outline);
        }
        .like[data-liked="true"] {
            color: var(--liked);
        }
        form.search {
            display: flex;
            gap: 1rem;
            margin-bottom: 1.5rem;
            flex-wrap: wrap;
        }
        form.search input[type="search"] {
            flex: 1;
            padding: 0.75rem 1rem;
            border-radius: 8px;
            border: 1px solid var(--outline);
        }
        .categories dt {
            font-weight: 700;
        }
        .categories dd {
            margin: 0 0 0.5rem;
        }
        .categories a {
            margin-right: 0.75rem;
        }
        .notice {
            background: #dbeafe;
            border-radius: 12px;
            padding: 1rem 1.5rem;
            margin-bottom: 1.5rem;
        }
        .error {
            color: #dc2626;
        }
        .muted {
            color: var(--text-muted);
        }
    </style>
</head>
<body>
    <header class="site">
        <a class="brand" href="/">__APP_NAME__</a>
        <nav>__NAV__</nav>
    </header>
    <main>
__CONTENT__
    </main>
    <script>
        (() => {
            const state = __STATE_JSON__;

            async function postJson(url, payload) {
                const response = await fetch(url, {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    body: JSON.stringify(payload || {}),
                });
                const body = await response.json().catch(() => ({}));
                return { ok: response.ok, body };
            }

            document.querySelectorAll('button.like').forEach((button) => {
                button.addEventListener('click', async (event) => {
                    event.preventDefault();
                    const { ok, body } = await postJson(button.dataset.url);
                    if (ok) {
                        button.dataset.liked = String(body.liked);
                    } else {
                        console.error('Failed to toggle like', body);
                    }
                });
            });

            const requestButton = document.getElementById('request-title');
            if (requestButton) {
                requestButton.addEventListener('click', async () => {
                    const { ok, body } = await postJson('/api/requests', {
                        query: state.query,
                        kind: state.kind,
                    });
                    if (ok && body.submitted) {
                        requestButton.textContent = 'Request sent';
                        requestButton.disabled = true;
                    } else {
                        console.error('Failed to submit request', body);
                    }
                });
            }

            const welcome = document.getElementById('welcome-dismiss');
            if (welcome) {
                welcome.addEventListener('click', async () => {
                    await postJson('/api/welcome/dismiss');
                    const notice = document.getElementById('welcome');
                    if (notice) {
                        notice.remove();
                    }
                });
            }

            const addForm = document.getElementById('add-item');
            if (addForm) {
                addForm.addEventListener('submit', async (event) => {
                    event.preventDefault();
                    const payload = Object.fromEntries(new FormData(addForm).entries());
                    const { ok, body } = await postJson(addForm.dataset.url, payload);
                    if (ok) {
                        window.location.reload();
                    } else {
                        console.error('Failed to add item', body);
                    }
                });
            }
        })();
    </script>
</body>
</html>
    """
)


def _render_page(
    settings: Settings,
    kinds: Iterable[CatalogKind],
    *,
    title: str,
    content: str,
    state: Mapping[str, object] | None = None,
) -> str:
    nav = "".join(
        f'<a href="/{kind.slug}">{escape(kind.label)}</a>' for kind in kinds
    )
    state_json = json.dumps(dict(state or {})).replace("</", "<\\/")
    html = PAGE_TEMPLATE
    replacements = {
        "__TITLE__": escape(title),
        "__APP_NAME__": escape(settings.app_name),
        "__NAV__": nav,
        "__STATE_JSON__": state_json,
        "__CONTENT__": content,
    }
    for placeholder, value in replacements.items():
        html = html.replace(placeholder, value)
    return html


def item_url(item: CatalogItem) -> str:
    return f"/{item.kind}/{quote(str(item.key), safe='')}"


def _render_card(kind: CatalogKind, item: CatalogItem, *, with_like: bool) -> str:
    lines = [
        f'<h3><a href="{item_url(item)}">{escape(item.display_title())}</a></h3>'
    ]
    for field, label in kind.summary_fields:
        value = item.field(field)
        if value in (None, ""):
            continue
        lines.append(f"<p>{escape(label)}: {escape(str(value))}</p>")
    if with_like:
        lines.append(
            '<button class="like" type="button" aria-label="Toggle like" '
            f'data-liked="{str(item.liked).lower()}" '
            f'data-url="/api{item_url(item)}/like">&#9829;</button>'
        )
    return f'<article class="card">{"".join(lines)}</article>'


def _render_recent(recent: Iterable[RecencyEntry], kinds: Mapping[str, CatalogKind]) -> str:
    entries = []
    for entry in recent:
        kind = kinds.get(entry.kind)
        label = kind.singular if kind else entry.kind
        href = f"/{entry.kind}/{quote(str(entry.id), safe='')}"
        entries.append(
            f'<li><a href="{href}">{escape(entry.title or str(entry.id))}</a> '
            f'<span class="muted">({escape(label)})</span></li>'
        )
    if not entries:
        return ""
    return f'<section><h2>Recently Viewed</h2><ul>{"".join(entries)}</ul></section>'


def render_dashboard_page(
    settings: Settings,
    kinds: tuple[CatalogKind, ...],
    liked: Mapping[str, list[CatalogItem]],
    recent: Iterable[RecencyEntry],
    *,
    show_welcome: bool,
) -> str:
    """Return the home page listing liked items of every kind."""

    sections: list[str] = []
    if show_welcome:
        sections.append(
            '<div class="notice" id="welcome">'
            f"<strong>Welcome to {escape(settings.app_name)}!</strong> "
            "Browse movies, TV shows and video games, and tap the heart on "
            "anything you like to keep it here. "
            '<button type="button" id="welcome-dismiss">Got it</button></div>'
        )
    sections.append("<h1>Your Liked Items</h1>")
    sections.append(_render_recent(recent, {kind.slug: kind for kind in kinds}))

    total = 0
    for kind in kinds:
        items = liked.get(kind.slug) or []
        if not items:
            continue
        total += len(items)
        cards = "".join(_render_card(kind, item, with_like=False) for item in items)
        sections.append(
            f'<section><h2>{escape(kind.label)}</h2><div class="grid">{cards}</div></section>'
        )
    if total == 0:
        sections.append('<p class="muted">You haven\'t liked any items yet.</p>')

    return _render_page(settings, kinds, title="Home", content="\n".join(sections))


def _catalog_link(kind: CatalogKind, **params: object) -> str:
    cleaned = {key: value for key, value in params.items() if value not in (None, "", False)}
    if not cleaned:
        return f"/{kind.slug}"
    return f"/{kind.slug}?{urlencode(cleaned)}"


def render_catalog_page(
    settings: Settings,
    kinds: tuple[CatalogKind, ...],
    kind: CatalogKind,
    items: list[CatalogItem],
    category_groups: Mapping[str, list[str]],
    *,
    query: str = "",
    category: str | None = None,
    liked_only: bool = False,
    require_query: bool = False,
) -> str:
    """Return the browse/search page for one catalog kind."""

    parts: list[str] = [f"<h1>{escape(kind.label)}</h1>"]
    liked_param = "true" if liked_only else ""
    parts.append(
        f'<form class="search" method="get" action="/{kind.slug}">'
        f'<input type="search" name="q" value="{escape(query)}" '
        f'placeholder="Search {escape(kind.label.lower())}..." />'
        + (
            f'<input type="hidden" name="category" value="{escape(category)}" />'
            if category
            else ""
        )
        + (
            '<input type="hidden" name="liked" value="true" />' if liked_only else ""
        )
        + '<button type="submit">Search</button>'
        + f'<a href="{_catalog_link(kind, q=query, category=category, liked="" if liked_only else "true")}">'
        + ("Show All" if liked_only else "Show Liked Only")
        + "</a></form>"
    )

    if category_groups:
        groups = []
        for letter, tokens in category_groups.items():
            links = "".join(
                f'<a href="{_catalog_link(kind, q=query, category=token, liked=liked_param)}">'
                f"{escape(token)}</a>"
                for token in tokens
            )
            groups.append(f"<dt>{escape(letter)}</dt><dd>{links}</dd>")
        clear = (
            f'<p><a href="{_catalog_link(kind, q=query, liked=liked_param)}">'
            f"All {escape(kind.category_label.lower())}s</a></p>"
            if category
            else ""
        )
        parts.append(
            f"<details class=\"categories\"><summary>{escape(kind.category_label)}"
            + (f": {escape(category)}" if category else "")
            + f"</summary>{clear}<dl>{''.join(groups)}</dl></details>"
        )

    if items:
        cards = "".join(_render_card(kind, item, with_like=True) for item in items)
        parts.append(f'<div class="grid">{cards}</div>')
    elif query.strip():
        parts.append(
            f'<p class="muted">No {escape(kind.label.lower())} match '
            f"&ldquo;{escape(query.strip())}&rdquo;.</p>"
            '<button type="button" id="request-title">Request this title</button>'
        )
    elif require_query:
        parts.append(
            f'<p class="muted">Type a title to search {escape(kind.label.lower())}.</p>'
        )
    else:
        parts.append(f'<p class="muted">No {escape(kind.label.lower())} found.</p>')

    fields = "".join(
        f'<label>{escape(name)} <input name="{escape(name)}" /></label> '
        for name in kind.form_fields
    )
    parts.append(
        f"<details><summary>Add {escape(kind.singular)}</summary>"
        f'<form id="add-item" data-url="/api/{kind.slug}">{fields}'
        f'<button type="submit">Add {escape(kind.singular)}</button></form></details>'
    )

    state = {"kind": kind.slug, "query": query.strip()}
    return _render_page(
        settings, kinds, title=kind.label, content="\n".join(parts), state=state
    )


def render_item_page(
    settings: Settings,
    kinds: tuple[CatalogKind, ...],
    kind: CatalogKind,
    item: CatalogItem,
) -> str:
    """Return the detail page for a single catalog item."""

    rows = []
    for field, label in kind.detail_fields:
        value = item.field(field)
        if value in (None, ""):
            continue
        rows.append(
            f"<p><strong>{escape(label)}:</strong> {escape(str(value))}</p>"
        )
    content = (
        f'<article class="card"><h1>{escape(item.display_title())}</h1>'
        f'{"".join(rows)}'
        '<button class="like" type="button" aria-label="Toggle like" '
        f'data-liked="{str(item.liked).lower()}" '
        f'data-url="/api{item_url(item)}/like">&#9829;</button></article>'
        f'<p><a href="/{kind.slug}">Back to {escape(kind.label)}</a></p>'
    )
    return _render_page(settings, kinds, title=item.display_title(), content=content)


def render_error_page(
    settings: Settings,
    kinds: tuple[CatalogKind, ...],
    message: str,
    *,
    title: str = "Error",
) -> str:
    """Return a full-page error replacing the view's content."""

    content = f'<h1>{escape(title)}</h1><p class="error">Error: {escape(message)}</p>'
    return _render_page(settings, kinds, title=title, content=content)
