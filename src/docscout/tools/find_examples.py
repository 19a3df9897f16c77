"""Tool handler for find_examples."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from docscout.models.tools import FindExamplesInput
from docscout.tools.formatting import errors_section, text_result, validate_arguments

if TYPE_CHECKING:
    from docscout.models.docs import DocumentationEntry
    from docscout.state import AppState

NAME = "find_examples"
DESCRIPTION = "Find code examples for specific topics or APIs"
INPUT_MODEL = FindExamplesInput


async def handle(arguments: dict[str, Any], state: AppState) -> dict:
    """Handle a find_examples tool call."""
    validated = validate_arguments(
        FindExamplesInput,
        arguments,
        "Provide a topic of 1-500 characters and a limit between 1 and 50.",
    )
    log = structlog.get_logger().bind(tool=NAME, topic=validated.topic)
    log.info("handler_called")

    result = await state.orchestrator.find_examples(
        validated.topic,
        sources=validated.sources,
        language=validated.language,
        limit=validated.limit,
    )
    if not result.entries:
        text = f'No examples found for "{validated.topic}"\n'
    else:
        text = render(result.entries)
    return text_result(text + errors_section(result.errors))


def render(examples: list[DocumentationEntry]) -> str:
    output = f"# Code Examples ({len(examples)} found)\n\n"
    for index, example in enumerate(examples, start=1):
        language = example.metadata.get("language") or ""
        output += f"## Example {index}: {example.title}\n"
        output += f"**Source:** {example.source_id}\n"
        output += f"**URL:** {example.url}\n"
        if language:
            output += f"**Language:** {language}\n"
        output += f"\n```{language}\n{example.content}\n```\n\n---\n\n"
    return output
