from __future__ import annotations

from docscout.models.cache import CacheEntry
from docscout.models.docs import (
    ApiIntent,
    ApiReferenceResult,
    DocKind,
    DocumentationEntry,
    ExamplesIntent,
    ExamplesResult,
    IndexIntent,
    MigrationGuideResult,
    MigrationIntent,
    ScrapeIntent,
    ScraperConfig,
    ScraperResult,
    SearchIntent,
    SearchResult,
    SourceId,
)
from docscout.models.tools import (
    FindExamplesInput,
    GetApiReferenceInput,
    GetMigrationGuideInput,
    SearchDocumentationInput,
)

__all__ = [
    # docs
    "DocKind",
    "SourceId",
    "DocumentationEntry",
    "ScraperConfig",
    "ScraperResult",
    # intents
    "ScrapeIntent",
    "SearchIntent",
    "ApiIntent",
    "ExamplesIntent",
    "MigrationIntent",
    "IndexIntent",
    # results
    "SearchResult",
    "ApiReferenceResult",
    "ExamplesResult",
    "MigrationGuideResult",
    # cache
    "CacheEntry",
    # tools
    "SearchDocumentationInput",
    "GetApiReferenceInput",
    "FindExamplesInput",
    "GetMigrationGuideInput",
]
