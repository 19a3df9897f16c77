"""Capability input models.

Each model is one tagged request variant: the dispatcher validates raw
``tools/call`` arguments against it before anything reaches the orchestrator.
Field aliases are the camelCase names used on the wire.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docscout.models.docs import DocKind, SourceId

CodeLanguage = Literal["javascript", "typescript", "jsx", "tsx"]

_FORBIDDEN_QUERY_FRAGMENTS = ("<script>", "javascript:")


class _ToolInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchDocumentationInput(_ToolInput):
    query: str = Field(min_length=1, max_length=1000)
    sources: list[SourceId] | None = None
    type: DocKind | None = None
    limit: int = Field(default=10, ge=1, le=100)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        lowered = v.lower()
        if any(fragment in lowered for fragment in _FORBIDDEN_QUERY_FRAGMENTS):
            raise ValueError("query contains disallowed content")
        if not v.strip():
            raise ValueError("query must not be blank")
        return v


class GetApiReferenceInput(_ToolInput):
    api_name: str = Field(alias="apiName", min_length=1, max_length=200)
    source: SourceId
    version: str | None = Field(default=None, max_length=50)


class FindExamplesInput(_ToolInput):
    topic: str = Field(min_length=1, max_length=500)
    sources: list[SourceId] | None = None
    language: CodeLanguage | None = None
    limit: int = Field(default=5, ge=1, le=50)


class GetMigrationGuideInput(_ToolInput):
    source: SourceId
    from_version: str = Field(alias="fromVersion", min_length=1, max_length=50)
    to_version: str = Field(alias="toVersion", min_length=1, max_length=50)
