"""
content_guard.ai.verdict_model – structured verdict returned per analysis.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON shape requested from the judgment service.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

VerdictStatus = Literal["Safe", "Warning", "High Risk"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ComparisonDetails(_CamelModel):
    """Per-dimension comparison of the new video against history."""
    composition:     str
    colors:          str
    subject_matter:  str
    motion_analysis: str


class HistoryCheck(_CamelModel):
    """
    Outcome of comparing the new video with stored signatures.

    ``matched_video_index`` is 1-based and refers to the history list as
    it was sent with the request, not to the store's current contents.
    """
    is_similar_to_past:  bool
    matched_video_index: int | None = None
    details:             str

    @field_validator("matched_video_index", mode="before")
    @classmethod
    def _whole_number_index(cls, value: object) -> object:
        """Keep whole-number indices; anything else means no usable match."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return None


class PolicyVerdict(_CamelModel):
    """Structured repetitive-content judgment for one analysis run."""
    similarity_score:   float
    is_repetitive:      bool
    status:             VerdictStatus
    policy_violations:  list[str] = Field(default_factory=list)
    recommendations:    str
    visual_signature:   str
    comparison_details: ComparisonDetails
    history_check:      HistoryCheck
