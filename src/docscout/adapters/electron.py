from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docscout.adapters.base import SourceAdapter
from docscout.parser import DocumentationParser

if TYPE_CHECKING:
    from docscout.models.docs import DocumentationEntry

# Query word -> API page slugs under /docs/latest/api/
_QUERY_TO_API_PAGES: dict[str, tuple[str, ...]] = {
    "app": ("app",),
    "window": ("browser-window",),
    "browserwindow": ("browser-window",),
    "browser": ("browser-window",),
    "web": ("web-contents",),
    "webcontents": ("web-contents",),
    "menu": ("menu",),
    "dialog": ("dialog",),
    "ipc": ("ipc-main", "ipc-renderer"),
    "main": ("ipc-main",),
    "process": ("process",),
    "shell": ("shell",),
    "clipboard": ("clipboard",),
    "screen": ("screen",),
    "notification": ("notification",),
    "tray": ("tray",),
}
_DEFAULT_SEARCH_PAGES = ("app", "browser-window", "web-contents")
_INDEX_PAGES = ("app", "browser-window", "web-contents", "menu", "dialog")

# Docusaurus containers, most specific first
_CONTENT_SELECTORS = (
    ".theme-doc-markdown.markdown",
    ".markdown",
    "main .container",
    "article",
)
_CHROME_SELECTOR = "nav, header, footer, .navbar, .sidebar, .breadcrumbs"
_MAX_FALLBACK_CHARS = 5000
_MIN_CONTENT_CHARS = 50
_MIN_EXAMPLE_CHARS = 10

_VERSION_PARTS_RE = re.compile(r"\d+")


def _version_key(version: str) -> tuple[int, ...] | None:
    parts = _VERSION_PARTS_RE.findall(version)
    if not parts:
        return None
    return tuple(int(p) for p in (parts + ["0", "0"])[:3])


def version_in_range(version: str, low: str, high: str) -> bool:
    v, lo, hi = _version_key(version), _version_key(low), _version_key(high)
    if v is None or lo is None or hi is None:
        return False
    return lo <= v <= hi


class ElectronAdapter(SourceAdapter):
    source_id = "electron"
    display_name = "Electron"

    migration_path = "/docs/latest/breaking-changes"

    def api_paths(self, name: str, version: str | None) -> list[str]:
        return [f"/docs/{version or 'latest'}/api/{name}"]

    async def search(self, query: str) -> list[DocumentationEntry]:
        query_lower = query.lower()
        pages: dict[str, None] = {}
        for term, slugs in _QUERY_TO_API_PAGES.items():
            if term in query_lower:
                pages.update(dict.fromkeys(slugs))
        if not pages:
            pages = dict.fromkeys(_DEFAULT_SEARCH_PAGES)
        return await self.fetch_pages([f"/docs/latest/api/{slug}" for slug in pages])

    async def index(self) -> list[DocumentationEntry]:
        return await self.fetch_pages([f"/docs/latest/api/{slug}" for slug in _INDEX_PAGES])

    async def examples(self, topic: str) -> list[DocumentationEntry]:
        slug = re.sub(r"\s+", "-", topic.strip().lower())
        entries = await self.fetch_and_parse(f"/docs/latest/api/{slug}")
        return [entry for entry in entries if entry.kind == "example"]

    async def migration(self, from_version: str, to_version: str) -> list[DocumentationEntry]:
        url = self.url_for(self.migration_path)
        parser = DocumentationParser(await self.fetch_html(self.migration_path), url)

        entries = []
        for guide in parser.parse_migration_guide():
            if version_in_range(
                from_version, guide.from_version, guide.to_version
            ) or version_in_range(to_version, guide.from_version, guide.to_version):
                entries.append(
                    self.create_entry(
                        f"Migration: {guide.from_version} to {guide.to_version}",
                        "\n\n".join(guide.changes),
                        url,
                        "migration",
                        from_version=guide.from_version,
                        to_version=guide.to_version,
                    )
                )
        return entries

    def _parse_document(
        self, parser: DocumentationParser, origin_url: str
    ) -> list[DocumentationEntry]:
        title = parser.first_text("h1")
        if not title:
            title = parser.first_text("title").split(" | ")[0].strip() or "Electron Documentation"

        content = ""
        for selector in _CONTENT_SELECTORS:
            container = parser.soup.select_one(selector)
            if container is not None:
                content = parser.extract_content(container)
                break

        if not content:
            parser.remove(_CHROME_SELECTOR)
            content = " ".join(parser.text().split())[:_MAX_FALLBACK_CHARS]

        entries = []
        if len(content) > _MIN_CONTENT_CHARS:
            entries.append(self.create_entry(title, content, origin_url, "api"))
        entries.extend(
            self._example_entries(
                parser,
                origin_url,
                fallback_title=f"Code Example from {title}",
                min_code_length=_MIN_EXAMPLE_CHARS,
            )
        )
        return entries
