"""
MarketAnalysis: structured product description returned by the vision model.
Field names follow the provider JSON (camelCase aliases).
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from studio.schemas.generation import ImageCategory


class MarketingCopy(BaseModel):
    title: str = ""
    short_desc: str = ""
    tags: list[str] = Field(default_factory=list)

    model_config = {"frozen": True, "populate_by_name": True, "alias_generator": to_camel}

    @field_validator("title", "short_desc", mode="before")
    @classmethod
    def null_text_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def null_tags_to_empty(cls, v: Any) -> Any:
        if not v:
            return []
        if isinstance(v, str):
            return [v]
        return [t for t in v if t is not None and str(t).strip()]


class MarketAnalysis(BaseModel):
    """Produced once per image set; read-only input to every generation call."""

    product_type: str = Field(..., min_length=1)
    target_audience: str = Field(..., min_length=1)
    selling_points: list[str] = Field(..., min_length=1)
    suggested_prompt: str = Field(..., min_length=1)
    recommended_categories: list[ImageCategory] = Field(default_factory=list)
    marketing_copy: MarketingCopy | None = None
    is_apparel: bool = False

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
        "str_strip_whitespace": True,
    }

    @field_validator("recommended_categories", mode="before")
    @classmethod
    def drop_unknown_categories(cls, v: Any) -> list[str]:
        """Model output is free text; keep only values we can render."""
        if not v:
            return []
        if not isinstance(v, list):
            v = [v]
        known = {c.value for c in ImageCategory}
        return [str(c).strip().upper() for c in v if str(c).strip().upper() in known]

    @field_validator("selling_points", mode="before")
    @classmethod
    def coerce_selling_points(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("selling_points")
    @classmethod
    def reject_blank_selling_points(cls, v: list[str]) -> list[str]:
        if any(not point for point in v):
            raise ValueError("selling points must not be blank")
        return v

    @field_validator("is_apparel", mode="before")
    @classmethod
    def null_flag_to_false(cls, v: Any) -> Any:
        return False if v is None else v
