from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SourceId = Literal["electron", "react", "node", "github"]
DocKind = Literal["api", "guide", "example", "migration"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentationEntry(BaseModel):
    """One parsed piece of documentation. Never mutated once produced."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str  # Plain extracted text, code blocks fenced
    url: str
    kind: DocKind
    source_id: str
    last_updated: datetime = Field(default_factory=_utcnow)
    metadata: dict[str, Any] = {}


class ScraperConfig(BaseModel):
    base_url: str
    rate_limit_per_minute: int | None = None
    timeout_ms: int = 30_000
    headers: dict[str, str] = {}

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base URL: {v!r}")
        return v.rstrip("/")


# ---------------------------------------------------------------------------
# Scrape intents: what the orchestrator asks an adapter to retrieve
# ---------------------------------------------------------------------------


class SearchIntent(BaseModel):
    intent: Literal["search"] = "search"
    query: str
    kind: DocKind | None = None


class ApiIntent(BaseModel):
    intent: Literal["api"] = "api"
    api_name: str
    version: str | None = None


class ExamplesIntent(BaseModel):
    intent: Literal["examples"] = "examples"
    topic: str


class MigrationIntent(BaseModel):
    intent: Literal["migration"] = "migration"
    from_version: str
    to_version: str


class IndexIntent(BaseModel):
    intent: Literal["index"] = "index"


ScrapeIntent = Annotated[
    SearchIntent | ApiIntent | ExamplesIntent | MigrationIntent | IndexIntent,
    Field(discriminator="intent"),
]


class ScraperResult(BaseModel):
    """Outcome of one adapter run. ``errors`` lists every failure encountered."""

    entries: list[DocumentationEntry] = []
    source_id: str
    scraped_at: datetime = Field(default_factory=_utcnow)
    errors: list[str] = []


# ---------------------------------------------------------------------------
# Orchestrator results (these are what gets cached)
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    entries: list[DocumentationEntry]
    total_count: int  # Matches before the limit was applied
    query: str
    sources: list[str]
    errors: list[str] = []


class ApiReferenceResult(BaseModel):
    entry: DocumentationEntry | None
    errors: list[str] = []


class ExamplesResult(BaseModel):
    entries: list[DocumentationEntry]
    errors: list[str] = []


class MigrationGuideResult(BaseModel):
    entries: list[DocumentationEntry]
    errors: list[str] = []
