"""Pattern rule models for workflow detection."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Protocol, Sequence

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from ..activity.models import WorkflowStep

ROOT_DIRECTORY = "root"


class PatternRule(Protocol):
    """A named boolean heuristic over one workflow sequence."""

    name: str
    description: str

    def matches(self, steps: Sequence[WorkflowStep]) -> bool:
        ...


@lru_cache(maxsize=512)
def _keyword_regex(keyword: str) -> re.Pattern[str]:
    return re.compile(r"(?:^|[\s;&|(])" + re.escape(keyword) + r"(?=$|[\s;&|)])")


def command_mentions(command: str, keyword: str) -> bool:
    """Whether ``keyword`` appears in ``command`` as a whole shell word run."""

    return _keyword_regex(keyword.lower()).search(command.lower()) is not None


class KeywordPatternRule(BaseModel):
    """Pattern rule expressed as keyword groups that must all be present."""

    name: str = Field(..., description="Stable identifier reported when the rule matches.")
    description: str = Field(default="", description="Human-friendly explanation of the signal.")
    all_of: list[list[str]] = Field(
        ...,
        description="Keyword groups; every group needs matching steps for the rule to fire.",
    )
    min_matches: int = Field(
        default=1,
        description="Number of steps each group must match within one sequence.",
    )
    subdirectory: bool = Field(
        default=False,
        description="Require at least one step executed outside the workspace root.",
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Pattern rule name must not be empty")
        return normalized

    @field_validator("all_of", mode="before")
    @classmethod
    def _ensure_groups(cls, value: Any):
        if isinstance(value, str):
            return [[value]]
        if isinstance(value, (list, tuple)):
            groups = [[item] if isinstance(item, str) else list(item) for item in value]
            if not groups or any(not group for group in groups):
                raise ValueError("all_of must contain non-empty keyword groups")
            return groups
        raise TypeError("all_of must be a keyword or a list of keyword groups")

    @field_validator("min_matches")
    @classmethod
    def _validate_min_matches(cls, value: int) -> int:
        if value < 1:
            raise ValueError("min_matches must be >= 1")
        return value

    def matches(self, steps: Sequence[WorkflowStep]) -> bool:
        if self.subdirectory and not any(step.directory != ROOT_DIRECTORY for step in steps):
            return False
        for group in self.all_of:
            hits = sum(
                1 for step in steps if any(command_mentions(step.command, keyword) for keyword in group)
            )
            if hits < self.min_matches:
                return False
        return True


__all__ = ["KeywordPatternRule", "PatternRule", "ROOT_DIRECTORY", "command_mentions"]
