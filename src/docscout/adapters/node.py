from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docscout.adapters.base import SourceAdapter
from docscout.parser import DocumentationParser

if TYPE_CHECKING:
    from docscout.models.docs import DocumentationEntry


class NodeAdapter(SourceAdapter):
    source_id = "node"
    display_name = "Node.js"

    section_selector = ".api_metadata, .api-section"

    index_path = "/api/"

    def api_paths(self, name: str, version: str | None) -> list[str]:
        prefix = f"docs/{version}" if version else "api"
        return [f"/{prefix}/{name}.html", f"/{prefix}/{name}"]

    async def examples(self, topic: str) -> list[DocumentationEntry]:
        slug = re.sub(r"\s+", "_", topic.strip().lower())
        entries = await self.fetch_and_parse(f"/api/{slug}.html")
        return [entry for entry in entries if entry.kind == "example"]

    async def index(self) -> list[DocumentationEntry]:
        url = self.url_for(self.index_path)
        parser = DocumentationParser(await self.fetch_html(self.index_path), url)
        return [
            self.create_entry(title, f"Node.js API Reference: {title}", href, "api", is_index=True)
            for href, title in parser.links("#apicontent a, .nav-link")
            if href.endswith(".html")
        ]
