"""Search criteria models shared by the builder and the engines."""

from __future__ import annotations

from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Reserved where-key carrying the soft-delete constraint
SOFT_DELETED_KEY = "__soft_deleted"

Direction = Literal["asc", "desc"]


class OrderClause(NamedTuple):
    """A single ``(column, direction)`` ordering."""

    column: str
    direction: Direction


def normalize_direction(direction: str) -> Direction:
    """Only a case-insensitive ``"asc"`` is ascending; everything else sorts descending."""
    return "asc" if str(direction).lower() == "asc" else "desc"


class SearchOptions(BaseModel):
    """Engine options recognized by OpenScout.

    Unknown keys are rejected. Engines ignore the keys they cannot honour:
    the collection, database and null engines ignore all of them.
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    attributes_to_retrieve: list[str] | None = Field(default=None, description="Fields returned per hit")
    attributes_to_highlight: list[str] | None = Field(default=None, description="Fields to highlight")
    attributes_to_crop: list[str] | None = Field(default=None, description="Fields to crop around matches")
    crop_length: int | None = Field(default=None, ge=1, description="Cropped length in words")
    highlight_pre_tag: str | None = Field(default=None, description="Tag inserted before highlighted terms")
    highlight_post_tag: str | None = Field(default=None, description="Tag inserted after highlighted terms")
    show_ranking_score: bool | None = Field(default=None, description="Include the engine's ranking score per hit")
    matching_strategy: Literal["last", "all", "frequency"] | None = Field(
        default=None, description="How query terms must match"
    )
    facets: list[str] | None = Field(default=None, description="Fields to compute facet distributions for")

    def to_params(self) -> dict[str, Any]:
        """Serialize the set options using engine wire names (camelCase)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def is_empty(self) -> bool:
        return not self.to_params()
