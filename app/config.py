"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .catalog_kinds import KIND_SLUGS, CatalogKind, build_catalog_kinds
from .utils import slugify


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Omnia", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    backend_url: HttpUrl = Field(
        default="http://localhost:54321",
        alias="BACKEND_URL",
        validation_alias=AliasChoices("BACKEND_URL", "SUPABASE_URL"),
    )
    backend_api_key: str | None = Field(
        default=None,
        alias="BACKEND_API_KEY",
        validation_alias=AliasChoices("BACKEND_API_KEY", "SUPABASE_ANON_KEY"),
    )
    backend_timeout_seconds: float = Field(
        default=20.0, alias="BACKEND_TIMEOUT", gt=0, le=300
    )

    movies_table: str = Field(default="Movies_List", alias="MOVIES_TABLE")
    tv_shows_table: str = Field(default="TV_Shows", alias="TV_SHOWS_TABLE")
    games_table: str = Field(default="Video_Game", alias="GAMES_TABLE")
    requests_table: str = Field(default="requests", alias="REQUESTS_TABLE")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./omnia.db", alias="DATABASE_URL"
    )

    recent_limit: int = Field(default=6, alias="RECENT_LIMIT", ge=1, le=50)
    recent_retention_days: int = Field(
        default=30, alias="RECENT_RETENTION_DAYS", ge=1, le=365
    )

    require_query_kinds: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), alias="REQUIRE_QUERY_KINDS"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("require_query_kinds", mode="before")
    @classmethod
    def _parse_require_query_kinds(cls, value: object) -> tuple[str, ...]:
        """Normalise the kinds whose views only list results for a typed query."""

        if value is None:
            return ()
        if isinstance(value, str):
            raw_values = [part.strip() for part in value.split(",")]
        elif isinstance(value, Iterable):
            raw_values = [str(part).strip() for part in value]
        else:
            raise TypeError(
                "REQUIRE_QUERY_KINDS must be a string or iterable of strings"
            )

        cleaned: list[str] = []
        for entry in raw_values:
            slug = slugify(entry)
            if not slug:
                continue
            if slug not in KIND_SLUGS:
                raise ValueError("Unknown catalog kinds configured")
            if slug not in cleaned:
                cleaned.append(slug)
        return tuple(cleaned)

    @property
    def backend_rest_url(self) -> str:
        """Return the base URL of the table API."""

        return f"{str(self.backend_url).rstrip('/')}/rest/v1"

    @property
    def catalog_kinds(self) -> tuple[CatalogKind, ...]:
        """Return kind descriptors bound to the configured table names."""

        return build_catalog_kinds(
            movies_table=self.movies_table,
            tv_shows_table=self.tv_shows_table,
            games_table=self.games_table,
        )

    def requires_query(self, slug: str) -> bool:
        return slug in self.require_query_kinds

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8"
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
