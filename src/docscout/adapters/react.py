from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docscout.adapters.base import SourceAdapter
from docscout.parser import DocumentationParser

if TYPE_CHECKING:
    from docscout.models.docs import DocumentationEntry


class ReactAdapter(SourceAdapter):
    source_id = "react"
    display_name = "React"

    title_selector = "h1, h2"
    section_selector = ".api-doc, .reference-doc"

    index_path = "/reference/react"
    upgrade_guide_path = "/blog/2022/03/08/react-18-upgrade-guide"

    def api_paths(self, name: str, version: str | None) -> list[str]:
        return [f"/reference/react/{name}"]

    async def examples(self, topic: str) -> list[DocumentationEntry]:
        slug = re.sub(r"\s+", "-", topic.strip().lower())
        entries = await self.fetch_and_parse(f"/learn/{slug}")
        return [entry for entry in entries if entry.kind == "example"]

    async def migration(self, from_version: str, to_version: str) -> list[DocumentationEntry]:
        """Serve the React 18 upgrade guide, re-tagged with the requested versions."""
        entries = await self.fetch_and_parse(self.upgrade_guide_path)
        return [
            entry.model_copy(
                update={
                    "kind": "migration",
                    "metadata": {
                        **entry.metadata,
                        "from_version": from_version,
                        "to_version": to_version,
                    },
                }
            )
            for entry in entries
        ]

    async def index(self) -> list[DocumentationEntry]:
        url = self.url_for(self.index_path)
        parser = DocumentationParser(await self.fetch_html(self.index_path), url)
        return [
            self.create_entry(title, f"React API Reference: {title}", href, "api", is_index=True)
            for href, title in parser.links("nav a, .reference-index a")
            if "/reference/" in href
        ]
