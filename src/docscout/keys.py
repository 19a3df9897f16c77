"""Deterministic cache fingerprints.

Used by both the orchestrator and the source adapters so that the two
layers always agree on the key for a given set of parameters.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


def fingerprint(prefix: str, params: Mapping[str, Any] | BaseModel) -> str:
    """Return ``"<prefix>:<16 hex chars>"`` for *params*.

    ``None`` values are dropped and keys are sorted before hashing, so two
    parameter sets that differ only in key order or in absent/null fields
    produce the same key.
    """
    if isinstance(params, BaseModel):
        params = params.model_dump(mode="json", by_alias=True)

    normalised = {key: params[key] for key in sorted(params) if params[key] is not None}
    encoded = json.dumps(normalised, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:16]
    return f"{prefix}:{digest}"
