"""Base class shared by every documentation source adapter.

An adapter turns a ScrapeIntent into DocumentationEntry objects for one
origin. ``scrape`` is the only public coroutine and it never raises: every
failure becomes a string in ``ScraperResult.errors`` so that one broken
source cannot abort a multi-source aggregation.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urljoin

import structlog

from docscout.errors import DocScoutError, SourceError
from docscout.keys import fingerprint
from docscout.models.docs import (
    ApiIntent,
    DocKind,
    DocumentationEntry,
    ExamplesIntent,
    IndexIntent,
    MigrationIntent,
    ScraperResult,
    SearchIntent,
)
from docscout.parser import DocumentationParser

if TYPE_CHECKING:
    from docscout.fetcher import Fetcher
    from docscout.models.docs import ScrapeIntent, ScraperConfig

log = structlog.get_logger()

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)([A-Z])")


def name_variants(api_name: str) -> list[str]:
    """Naming variants tried for a named API lookup, in order, deduplicated.

    >>> name_variants("BrowserWindow")
    ['browserwindow', 'browser-window', 'BrowserWindow']
    """
    candidates = [
        api_name.lower(),
        _CAMEL_BOUNDARY_RE.sub(r"-\1", api_name).lower(),
        api_name,
    ]
    return list(dict.fromkeys(candidates))


class SourceAdapter:
    """Retrieves and parses documentation from a single origin."""

    source_id: ClassVar[str]
    display_name: ClassVar[str]
    default_language: ClassVar[str] = "javascript"

    # Structural markers handed to DocumentationParser.parse_api_docs
    title_selector: ClassVar[str] = "h1, h2, h3"
    section_selector: ClassVar[str] = ".api-section, .method, .function"

    def __init__(self, config: ScraperConfig, fetcher: Fetcher) -> None:
        self.config = config
        self.fetcher = fetcher
        fetcher.guard.configure_source(self.source_id, config.rate_limit_per_minute)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def scrape(self, intent: ScrapeIntent) -> ScraperResult:
        log.debug("scrape_started", source=self.source_id, intent=intent.intent)
        errors: list[str] = []
        entries: list[DocumentationEntry] = []

        try:
            entries = await self._run(intent)
        except DocScoutError as exc:
            errors.append(f"{self.source_id}: {exc.message}")
        except Exception:
            log.error("scrape_unexpected_error", source=self.source_id, exc_info=True)
            errors.append(f"{self.source_id}: Internal error")

        if errors:
            log.warning("scrape_errors", source=self.source_id, errors=errors)
        return ScraperResult(entries=entries, source_id=self.source_id, errors=errors)

    def parse(self, markup: str, origin_url: str) -> list[DocumentationEntry]:
        """Extract entries from *markup*. Returns ``[]`` on unparseable input."""
        try:
            parser = DocumentationParser(markup, origin_url)
            return self._parse_document(parser, origin_url)
        except Exception:
            log.warning("parse_failed", source=self.source_id, url=origin_url, exc_info=True)
            return []

    def cache_key(self, intent: ScrapeIntent) -> str:
        return fingerprint(self.source_id, intent)

    # ------------------------------------------------------------------
    # Intent handlers; subclasses override what their origin supports
    # ------------------------------------------------------------------

    async def search(self, query: str) -> list[DocumentationEntry]:
        # Sources without a search endpoint hand back their index; the
        # orchestrator does the term filtering.
        return await self.index()

    async def examples(self, topic: str) -> list[DocumentationEntry]:
        raise SourceError("Example search is not supported", source_id=self.source_id)

    async def migration(self, from_version: str, to_version: str) -> list[DocumentationEntry]:
        raise SourceError(
            f"Migration guides are not supported for {self.display_name}",
            source_id=self.source_id,
            recoverable=False,
        )

    async def index(self) -> list[DocumentationEntry]:
        return []

    def api_paths(self, name: str, version: str | None) -> list[str]:
        """Candidate page paths for one naming variant of an API."""
        return []

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def url_for(self, path: str) -> str:
        return urljoin(self.config.base_url + "/", path.lstrip("/"))

    async def fetch_html(self, url_or_path: str) -> str:
        return await self.fetcher.fetch_text(
            self.url_for(url_or_path),
            source_id=self.source_id,
            headers=self.config.headers,
            timeout=self.config.timeout_ms / 1000,
        )

    async def fetch_json(self, url_or_path: str) -> Any:
        return await self.fetcher.fetch_json(
            self.url_for(url_or_path),
            source_id=self.source_id,
            headers=self.config.headers,
            timeout=self.config.timeout_ms / 1000,
        )

    async def fetch_and_parse(self, path: str) -> list[DocumentationEntry]:
        html = await self.fetch_html(path)
        return self.parse(html, self.url_for(path))

    async def fetch_pages(self, paths: list[str]) -> list[DocumentationEntry]:
        """Fetch and parse several pages, skipping failures unless every page fails."""
        entries: list[DocumentationEntry] = []
        last_failure: SourceError | None = None
        for path in paths:
            try:
                entries.extend(await self.fetch_and_parse(path))
            except SourceError as exc:
                log.debug("page_skipped", source=self.source_id, path=path, reason=exc.message)
                last_failure = exc
        if not entries and last_failure is not None:
            raise last_failure
        return entries

    async def lookup_api(self, api_name: str, version: str | None) -> list[DocumentationEntry]:
        """Try every naming variant against every candidate path; first page wins."""
        for name in name_variants(api_name):
            for path in self.api_paths(name, version):
                try:
                    return await self.fetch_and_parse(path)
                except SourceError as exc:
                    log.debug(
                        "api_variant_miss",
                        source=self.source_id,
                        path=path,
                        reason=exc.message,
                    )
        raise SourceError(
            f"API not found: {api_name}",
            source_id=self.source_id,
            suggestion="Check the API name spelling or try a different source.",
            recoverable=False,
        )

    def create_entry(
        self,
        title: str,
        content: str,
        url: str,
        kind: DocKind,
        **metadata: Any,
    ) -> DocumentationEntry:
        return DocumentationEntry(
            title=title,
            content=content,
            url=url,
            kind=kind,
            source_id=self.source_id,
            metadata={k: v for k, v in metadata.items() if v is not None},
        )

    def _parse_document(
        self, parser: DocumentationParser, origin_url: str
    ) -> list[DocumentationEntry]:
        """Default extraction: api sections, then code examples."""
        entries = [
            self.create_entry(section.title, section.content, origin_url, "api")
            for section in parser.parse_api_docs(
                title_selector=self.title_selector,
                section_selector=self.section_selector,
            )
        ]
        entries.extend(self._example_entries(parser, origin_url))
        return entries

    def _example_entries(
        self,
        parser: DocumentationParser,
        origin_url: str,
        *,
        fallback_title: str | None = None,
        min_code_length: int = 0,
    ) -> list[DocumentationEntry]:
        entries = []
        for example in parser.parse_code_examples():
            if len(example.code) <= min_code_length:
                continue
            entries.append(
                self.create_entry(
                    example.description or fallback_title or f"{self.display_name} Example",
                    example.code,
                    origin_url,
                    "example",
                    language=example.language or self.default_language,
                    description=example.description,
                )
            )
        return entries

    async def _run(self, intent: ScrapeIntent) -> list[DocumentationEntry]:
        if isinstance(intent, ApiIntent):
            return await self.lookup_api(intent.api_name, intent.version)
        if isinstance(intent, SearchIntent):
            return await self.search(intent.query)
        if isinstance(intent, ExamplesIntent):
            return await self.examples(intent.topic)
        if isinstance(intent, MigrationIntent):
            return await self.migration(intent.from_version, intent.to_version)
        if isinstance(intent, IndexIntent):
            return await self.index()
        raise SourceError(f"Unsupported intent: {intent!r}", source_id=self.source_id)
