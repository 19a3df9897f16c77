"""Tool handler for search_documentation.

Receives AppState, delegates to the orchestrator, and returns a
CallToolResult dict. No transport imports; the dispatcher handles the
JSON-RPC wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from docscout.models.tools import SearchDocumentationInput
from docscout.tools.formatting import (
    SEARCH_PREVIEW_CHARS,
    errors_section,
    text_result,
    validate_arguments,
)

if TYPE_CHECKING:
    from docscout.models.docs import SearchResult
    from docscout.state import AppState

NAME = "search_documentation"
DESCRIPTION = "Search across technical documentation sources (Electron, React, Node.js, GitHub)"
INPUT_MODEL = SearchDocumentationInput


async def handle(arguments: dict[str, Any], state: AppState) -> dict:
    """Handle a search_documentation tool call."""
    validated = validate_arguments(
        SearchDocumentationInput,
        arguments,
        "Provide a query of 1-1000 characters and a limit between 1 and 100.",
    )
    log = structlog.get_logger().bind(tool=NAME, query=validated.query)
    log.info("handler_called")

    result = await state.orchestrator.search(
        validated.query,
        sources=validated.sources,
        kind=validated.type,
        limit=validated.limit,
    )
    return text_result(render(result))


def render(result: SearchResult) -> str:
    output = f'# Search Results for "{result.query}"\n\n'
    output += f"Found {result.total_count} results across {', '.join(result.sources)}\n\n"

    for index, entry in enumerate(result.entries, start=1):
        output += f"## {index}. {entry.title}\n"
        output += f"**Source:** {entry.source_id} | **Type:** {entry.kind}\n"
        output += f"**URL:** {entry.url}\n\n"
        preview = entry.content[:SEARCH_PREVIEW_CHARS]
        ellipsis = "..." if len(entry.content) > SEARCH_PREVIEW_CHARS else ""
        output += f"{preview}{ellipsis}\n\n---\n\n"

    return output + errors_section(result.errors)
