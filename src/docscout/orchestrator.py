"""Retrieval orchestrator: cache lookup, multi-source fan-out, ranking.

Every operation follows the same shape: fingerprint the parameters, answer
from the cache when possible, otherwise scrape the target sources
concurrently, rank what came back and cache the ranked result (errors
included) under the operation's TTL.

A source that fails contributes an error string instead of entries; it
never aborts the aggregation. Concurrent first misses for the same key may
both scrape; the last writer wins.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

import structlog

from docscout.keys import fingerprint
from docscout.models.docs import (
    ApiIntent,
    ApiReferenceResult,
    DocumentationEntry,
    ExamplesIntent,
    ExamplesResult,
    MigrationGuideResult,
    MigrationIntent,
    SearchIntent,
    SearchResult,
)

if TYPE_CHECKING:
    from docscout.models.docs import DocKind, ScrapeIntent
    from docscout.protocols import CacheProtocol, SourceAdapterProtocol

log = structlog.get_logger()

SEARCH_TTL_SECONDS = 1800
API_REFERENCE_TTL_SECONDS = 3600
EXAMPLES_TTL_SECONDS = 1800
MIGRATION_TTL_SECONDS = 7200

# Sources that republish third-party content; ranked below first-party docs.
AGGREGATOR_SOURCES = frozenset({"github"})

_API_NAME_SEPARATORS_RE = re.compile(r"[._-]")


def not_configured(source_id: str) -> str:
    return f"Scraper not configured for source: {source_id}"


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def score_search_entry(entry: DocumentationEntry, query: str, terms: Sequence[str]) -> int:
    title = entry.title.lower()
    content = entry.content.lower()
    score = 0
    if title == query:
        score += 100
    if query in title:
        score += 50
    for term in terms:
        score += title.count(term) * 10
        score += content.count(term) * 2
    return score


def score_example(entry: DocumentationEntry, topic: str, terms: Sequence[str]) -> int:
    title = entry.title.lower()
    content = entry.content.lower()
    score = 50 if topic in title else 0
    for term in terms:
        if term in title:
            score += 20
        if term in content:
            score += 5
    if entry.metadata.get("description"):
        score += 10
    if entry.source_id not in AGGREGATOR_SOURCES:
        score += 15
    return score


def best_api_match(
    entries: Sequence[DocumentationEntry], api_name: str
) -> DocumentationEntry | None:
    """Exact title, then substring, then any name token, then the first entry."""
    name = api_name.lower()
    titles = [entry.title.lower() for entry in entries]

    for entry, title in zip(entries, titles, strict=True):
        if title == name:
            return entry
    for entry, title in zip(entries, titles, strict=True):
        if name in title:
            return entry

    parts = [part for part in _API_NAME_SEPARATORS_RE.split(name) if part]
    for entry, title in zip(entries, titles, strict=True):
        if any(part in title for part in parts):
            return entry

    return entries[0] if entries else None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    def __init__(
        self,
        cache: CacheProtocol,
        adapters: Mapping[str, SourceAdapterProtocol],
    ) -> None:
        self.cache = cache
        self.adapters = adapters

    async def search(
        self,
        query: str,
        *,
        sources: Sequence[str] | None = None,
        kind: DocKind | None = None,
        limit: int = 10,
    ) -> SearchResult:
        key = fingerprint(
            "search",
            {"query": query, "sources": _key_sources(sources), "type": kind, "limit": limit},
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return SearchResult.model_validate(cached)

        targets = self._targets(sources)
        entries, errors = await self._fan_out(targets, SearchIntent(query=query, kind=kind))

        query_lower = query.lower()
        terms = query_lower.split()
        matches = [
            entry
            for entry in entries
            if (kind is None or entry.kind == kind)
            and all(term in f"{entry.title} {entry.content}".lower() for term in terms)
        ]
        # sorted() is stable, so equal scores keep retrieval order
        ranked = sorted(
            matches,
            key=lambda entry: score_search_entry(entry, query_lower, terms),
            reverse=True,
        )

        result = SearchResult(
            entries=ranked[:limit],
            total_count=len(ranked),
            query=query,
            sources=targets,
            errors=errors,
        )
        await self.cache.set(key, result.model_dump(mode="json"), SEARCH_TTL_SECONDS)
        log.info(
            "search_complete",
            query=query,
            sources=targets,
            total_count=result.total_count,
            returned=len(result.entries),
            error_count=len(errors),
        )
        return result

    async def get_api_reference(
        self,
        api_name: str,
        source: str,
        version: str | None = None,
    ) -> ApiReferenceResult:
        key = fingerprint(
            "api_ref", {"apiName": api_name, "source": source, "version": version}
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return ApiReferenceResult.model_validate(cached)

        entries, errors = await self._fan_out(
            [source], ApiIntent(api_name=api_name, version=version)
        )
        result = ApiReferenceResult(entry=best_api_match(entries, api_name), errors=errors)
        await self.cache.set(key, result.model_dump(mode="json"), API_REFERENCE_TTL_SECONDS)
        log.info(
            "api_reference_complete",
            api_name=api_name,
            source=source,
            found=result.entry is not None,
        )
        return result

    async def find_examples(
        self,
        topic: str,
        *,
        sources: Sequence[str] | None = None,
        language: str | None = None,
        limit: int = 5,
    ) -> ExamplesResult:
        key = fingerprint(
            "examples",
            {
                "topic": topic,
                "sources": _key_sources(sources),
                "language": language,
                "limit": limit,
            },
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return ExamplesResult.model_validate(cached)

        entries, errors = await self._fan_out(self._targets(sources), ExamplesIntent(topic=topic))

        examples = [entry for entry in entries if entry.kind == "example"]
        if language:
            wanted = language.lower()
            examples = [
                entry
                for entry in examples
                if str(entry.metadata.get("language", "")).lower() == wanted
            ]

        topic_lower = topic.lower()
        terms = topic_lower.split()
        ranked = sorted(
            examples,
            key=lambda entry: score_example(entry, topic_lower, terms),
            reverse=True,
        )

        result = ExamplesResult(entries=ranked[:limit], errors=errors)
        await self.cache.set(key, result.model_dump(mode="json"), EXAMPLES_TTL_SECONDS)
        log.info("examples_complete", topic=topic, returned=len(result.entries))
        return result

    async def get_migration_guide(
        self,
        source: str,
        from_version: str,
        to_version: str,
    ) -> MigrationGuideResult:
        key = fingerprint(
            "migration",
            {"source": source, "fromVersion": from_version, "toVersion": to_version},
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return MigrationGuideResult.model_validate(cached)

        entries, errors = await self._fan_out(
            [source], MigrationIntent(from_version=from_version, to_version=to_version)
        )
        result = MigrationGuideResult(
            entries=[entry for entry in entries if entry.kind == "migration"],
            errors=errors,
        )
        await self.cache.set(key, result.model_dump(mode="json"), MIGRATION_TTL_SECONDS)
        log.info("migration_guide_complete", source=source, returned=len(result.entries))
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _targets(self, sources: Sequence[str] | None) -> list[str]:
        if not sources:
            return list(self.adapters)
        return list(dict.fromkeys(sources))

    async def _fan_out(
        self, targets: Sequence[str], intent: ScrapeIntent
    ) -> tuple[list[DocumentationEntry], list[str]]:
        """Scrape *targets* concurrently. Entries keep target order."""
        errors: list[str] = []
        adapters = []
        for source_id in targets:
            adapter = self.adapters.get(source_id)
            if adapter is None:
                errors.append(not_configured(source_id))
            else:
                adapters.append(adapter)

        results = await asyncio.gather(*(adapter.scrape(intent) for adapter in adapters))

        entries: list[DocumentationEntry] = []
        for result in results:
            entries.extend(result.entries)
            errors.extend(result.errors)
        return entries, errors


def _key_sources(sources: Sequence[str] | None) -> list[str] | None:
    return sorted(set(sources)) if sources else None
