"""Tool handler for get_migration_guide."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from docscout.models.tools import GetMigrationGuideInput
from docscout.tools.formatting import errors_section, text_result, validate_arguments

if TYPE_CHECKING:
    from docscout.models.docs import DocumentationEntry
    from docscout.state import AppState

NAME = "get_migration_guide"
DESCRIPTION = "Get migration guides between different versions"
INPUT_MODEL = GetMigrationGuideInput


async def handle(arguments: dict[str, Any], state: AppState) -> dict:
    """Handle a get_migration_guide tool call."""
    validated = validate_arguments(
        GetMigrationGuideInput,
        arguments,
        "Provide source, fromVersion and toVersion.",
    )
    log = structlog.get_logger().bind(tool=NAME, source=validated.source)
    log.info("handler_called")

    result = await state.orchestrator.get_migration_guide(
        validated.source, validated.from_version, validated.to_version
    )
    if not result.entries:
        text = (
            f"No migration guide found for {validated.source} "
            f"from {validated.from_version} to {validated.to_version}\n"
        )
    else:
        text = render(result.entries, validated)
    return text_result(text + errors_section(result.errors))


def render(entries: list[DocumentationEntry], request: GetMigrationGuideInput) -> str:
    output = (
        f"# Migration Guide: {request.source} "
        f"{request.from_version} → {request.to_version}\n\n"
    )
    for index, entry in enumerate(entries):
        if index > 0:
            output += "\n---\n\n"
        output += f"## {entry.title}\n\n{entry.content}\n"
        output += "\n### Additional Information\n"
        output += f"- From Version: {entry.metadata.get('from_version', request.from_version)}\n"
        output += f"- To Version: {entry.metadata.get('to_version', request.to_version)}\n"
    return output
