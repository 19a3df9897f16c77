from __future__ import annotations

from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from docscout.adapters.base import SourceAdapter
from docscout.errors import SourceError
from docscout.parser import DocumentationParser

if TYPE_CHECKING:
    from docscout.models.docs import DocumentationEntry

GITHUB_API_URL = "https://api.github.com"
MAX_CODE_SEARCH_RESULTS = 10

_EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".jsx": "jsx",
    ".tsx": "tsx",
}


class GitHubAdapter(SourceAdapter):
    """GitHub REST docs plus code search.

    Code-search results are third-party repositories rather than curated
    documentation, which is why the orchestrator ranks this source lower.
    """

    source_id = "github"
    display_name = "GitHub"

    title_selector = "h1, h2"
    section_selector = ".rest-operation, .graphql-operation"

    index_path = "/rest"

    def api_paths(self, name: str, version: str | None) -> list[str]:
        return [f"/rest/reference/{name}"]

    async def examples(self, topic: str) -> list[DocumentationEntry]:
        query = urlencode({"q": f"{topic} language:javascript language:typescript"})
        payload = await self.fetch_json(f"{GITHUB_API_URL}/search/code?{query}")
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise SourceError(
                "Unexpected code search response",
                source_id=self.source_id,
                recoverable=False,
            )
        return [self._code_search_entry(item) for item in items[:MAX_CODE_SEARCH_RESULTS]]

    async def index(self) -> list[DocumentationEntry]:
        url = self.url_for(self.index_path)
        parser = DocumentationParser(await self.fetch_html(self.index_path), url)
        return [
            self.create_entry(title, f"GitHub API Reference: {title}", href, "api", is_index=True)
            for href, title in parser.links('.rest-category a, nav a[href*="/rest/"]')
        ]

    def _code_search_entry(self, item: dict[str, Any]) -> DocumentationEntry:
        repository = (item.get("repository") or {}).get("full_name", "")
        path = item.get("path", "")
        language = _EXTENSION_LANGUAGES.get(PurePosixPath(path).suffix.lower(), "javascript")
        return self.create_entry(
            item.get("name") or path,
            f"Repository: {repository}\nPath: {path}",
            item.get("html_url", ""),
            "example",
            language=language,
            repository=repository,
            path=path,
            score=item.get("score"),
        )
