"""Pydantic models shared by both translation directions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TranslationMeta(BaseModel):
    """Metadata recorded for every successful translation."""

    translator_name: str
    elapsed_seconds: float = 0.0
    params: dict[str, Any] = Field(default_factory=dict)


class AttributeSummary(BaseModel):
    """One attribute as seen on either side of the codec."""

    name: str
    num_values: int = 0
    num_indices: int = 0
    interpolation: str | None = None
