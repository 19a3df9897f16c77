"""Tool handler for get_api_reference."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from docscout.models.tools import GetApiReferenceInput
from docscout.tools.formatting import errors_section, render_entry, text_result, validate_arguments

if TYPE_CHECKING:
    from docscout.state import AppState

NAME = "get_api_reference"
DESCRIPTION = "Get detailed API reference documentation for a specific API"
INPUT_MODEL = GetApiReferenceInput


async def handle(arguments: dict[str, Any], state: AppState) -> dict:
    """Handle a get_api_reference tool call."""
    validated = validate_arguments(
        GetApiReferenceInput,
        arguments,
        "Provide apiName and one of: electron, react, node, github as source.",
    )
    log = structlog.get_logger().bind(
        tool=NAME, api_name=validated.api_name, source=validated.source
    )
    log.info("handler_called")

    result = await state.orchestrator.get_api_reference(
        validated.api_name, validated.source, validated.version
    )
    if result.entry is None:
        text = f'No API reference found for "{validated.api_name}" in {validated.source}\n'
    else:
        text = render_entry(result.entry)
    return text_result(text + errors_section(result.errors))
