from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """A cached payload with its own TTL.

    Serialised to disk with camelCase keys:
    ``{"payload": ..., "createdAt": <epoch seconds>, "ttlSeconds": <int>}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    payload: Any
    created_at: float = Field(alias="createdAt")  # Epoch seconds
    ttl_seconds: int = Field(alias="ttlSeconds")

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_seconds
