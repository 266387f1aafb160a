"""Entry point for the FastAPI-powered catalog browser."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .local_store import LocalStore
from .models import AdditionRequest
from .services.backend import BackendClient, BackendError
from .services.catalog import CatalogService, CatalogView
from .web import (
    render_catalog_page,
    render_dashboard_page,
    render_error_page,
    render_item_page,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    backend_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.backend_rest_url,
            timeout=httpx.Timeout(settings.backend_timeout_seconds, connect=10.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    backend = BackendClient(settings, backend_http_client)
    catalog_service = CatalogService(settings, backend, LocalStore(database.session_factory))

    fastapi_app.state.catalog_service = catalog_service
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        catalog_service.close()
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Browse, search and like movies, TV shows and video games",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def _parse_flag(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


async def _read_json_object(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid payload") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")
    return payload


def register_routes(fastapi_app: FastAPI) -> None:
    def _view(slug: str) -> CatalogView:
        service = get_catalog_service(fastapi_app)
        try:
            return service.get_view(slug)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Unknown catalog") from exc

    def _kinds() -> tuple:
        service = get_catalog_service(fastapi_app)
        return tuple(view.kind for view in service.views.values())

    def _error_page(message: str, *, title: str, status_code: int = 502) -> HTMLResponse:
        return HTMLResponse(
            render_error_page(settings, _kinds(), message, title=title),
            status_code=status_code,
        )

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/", response_class=HTMLResponse)
    async def dashboard_page() -> HTMLResponse:
        service = get_catalog_service(fastapi_app)
        try:
            liked = await service.dashboard.load_liked()
        except BackendError as exc:
            logger.error("Failed to load liked items: %s", exc)
            return _error_page(exc.message, title="Your Liked Items")
        recent = await service.dashboard.current_recent()
        show_welcome = not await service.has_seen_welcome()
        return HTMLResponse(
            render_dashboard_page(
                settings, _kinds(), liked, recent, show_welcome=show_welcome
            )
        )

    @fastapi_app.get("/api/recent")
    async def recent_items() -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        entries = await service.tracker.load_recent()
        return JSONResponse([entry.model_dump(mode="json") for entry in entries])

    @fastapi_app.post("/api/requests")
    async def submit_request(request: Request) -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        payload = await _read_json_object(request)
        try:
            addition = AdditionRequest.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False)
            ) from exc
        if addition.kind is not None and addition.kind not in service.views:
            raise HTTPException(status_code=400, detail="Unknown catalog")
        submitted = await service.requests.submit(addition)
        return JSONResponse({"submitted": submitted})

    @fastapi_app.post("/api/welcome/dismiss")
    async def dismiss_welcome() -> dict[str, bool]:
        service = get_catalog_service(fastapi_app)
        await service.dismiss_welcome()
        return {"hasSeenWelcome": True}

    @fastapi_app.get("/api/{slug}")
    async def search_catalog(
        slug: str,
        q: str = "",
        category: str | None = None,
        liked: str | None = None,
    ) -> JSONResponse:
        view = _view(slug)
        try:
            await view.load()
        except BackendError as exc:
            raise HTTPException(status_code=502, detail=exc.message) from exc
        items = view.search(q, category=category, liked_only=_parse_flag(liked))
        return JSONResponse([item.to_payload() for item in items])

    @fastapi_app.post("/api/{slug}")
    async def add_catalog_item(slug: str, request: Request) -> JSONResponse:
        view = _view(slug)
        payload = await _read_json_object(request)
        try:
            await view.ensure_loaded()
        except BackendError as exc:
            raise HTTPException(status_code=502, detail=exc.message) from exc
        try:
            item = await view.add_item(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if item is None:
            raise HTTPException(status_code=502, detail="The item could not be added")
        return JSONResponse(item.to_payload(), status_code=201)

    @fastapi_app.post("/api/{slug}/{key}/like")
    async def toggle_like(slug: str, key: str) -> JSONResponse:
        view = _view(slug)
        try:
            await view.ensure_loaded()
        except BackendError as exc:
            raise HTTPException(status_code=502, detail=exc.message) from exc
        if view.find(key) is None:
            raise HTTPException(status_code=404, detail="Item not found")
        item = await view.toggle_like(key)
        if item is None:
            raise HTTPException(status_code=502, detail="The like could not be saved")
        return JSONResponse(item.to_payload())

    @fastapi_app.get("/{slug}", response_class=HTMLResponse)
    async def catalog_page(
        slug: str,
        q: str = "",
        category: str | None = None,
        liked: str | None = None,
    ) -> HTMLResponse:
        view = _view(slug)
        try:
            await view.load()
        except BackendError as exc:
            logger.error("Failed to load %s: %s", slug, exc)
            return _error_page(exc.message, title=view.kind.label)
        liked_only = _parse_flag(liked)
        category = (category or "").strip() or None
        items = view.search(q, category=category, liked_only=liked_only)
        return HTMLResponse(
            render_catalog_page(
                settings,
                _kinds(),
                view.kind,
                items,
                view.category_groups(),
                query=q,
                category=category,
                liked_only=liked_only,
                require_query=view.require_query,
            )
        )

    @fastapi_app.get("/{slug}/{key}", response_class=HTMLResponse)
    async def item_page(slug: str, key: str) -> HTMLResponse:
        view = _view(slug)
        try:
            await view.ensure_loaded()
        except BackendError as exc:
            logger.error("Failed to load %s: %s", slug, exc)
            return _error_page(exc.message, title=view.kind.label)
        item = await view.open_item(key)
        if item is None:
            raise HTTPException(status_code=404, detail="Item not found")
        return HTMLResponse(render_item_page(settings, _kinds(), view.kind, item))


app = create_app()
