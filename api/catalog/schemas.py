"""
Pydantic schemas for catalog endpoints.

Section content is not validated beyond being JSON; extra fields are kept.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReplaceCatalogRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Optional here so a missing key gets a descriptive 400 instead of a 422.
    services: dict[str, Any] | None = None


class CreateSectionRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(default="", max_length=500)
    description: str = Field(default="", max_length=5000)
    type: str = Field(default="text", min_length=1, max_length=50)
    content: list[Any] = Field(default_factory=list)


class UpdateSectionRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=5000)
    type: str | None = Field(default=None, min_length=1, max_length=50)
    content: list[Any] | None = None
