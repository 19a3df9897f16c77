"""Shared helpers for tool handlers: argument validation and markdown rendering."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, TypeVar

import pydantic
from mcp.types import CallToolResult, TextContent

from docscout.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docscout.models.docs import DocumentationEntry

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

SEARCH_PREVIEW_CHARS = 300


def validate_arguments(model: type[ModelT], arguments: dict[str, Any], suggestion: str) -> ModelT:
    """Validate raw ``tools/call`` arguments, raising ``ValidationError`` on failure."""
    try:
        return model.model_validate(arguments)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            format_validation_error(exc),
            suggestion=suggestion,
        ) from exc


def format_validation_error(exc: pydantic.ValidationError) -> str:
    problems = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        problems.append(f"{location}: {error['msg']}")
    return "Invalid arguments: " + "; ".join(problems)


def text_result(text: str) -> dict:
    result = CallToolResult(content=[TextContent(type="text", text=text)])
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


def errors_section(errors: Iterable[str]) -> str:
    errors = list(errors)
    if not errors:
        return ""
    lines = "\n".join(f"- {error}" for error in errors)
    return f"\n## Sources with errors\n\n{lines}\n"


def render_entry(entry: DocumentationEntry) -> str:
    output = f"# {entry.title}\n\n"
    output += f"**Source:** {entry.source_id} | **Type:** {entry.kind}\n"
    output += f"**URL:** {entry.url}\n"
    output += f"**Last Updated:** {entry.last_updated.isoformat()}\n\n"
    output += f"## Content\n\n{entry.content}\n"
    if entry.metadata:
        metadata = json.dumps(entry.metadata, indent=2, default=str)
        output += f"\n## Metadata\n```json\n{metadata}\n```\n"
    return output
