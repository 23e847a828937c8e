"""Verdict types produced by the content analysis pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class CrisisType(str, Enum):
    SUICIDE = "suicide"
    DEPRESSION = "depression"
    GENERAL = "general"


@dataclass(frozen=True)
class AnalysisResult:
    """Support-routing verdict.

    ``crisis_type`` is set iff ``is_crisis``; ``highlighted_content`` is set
    iff ``is_vulgar``. Use :meth:`build` to get those guarantees from loosely
    assembled flags.
    """

    is_vulgar: bool
    is_crisis: bool
    highlighted_content: Optional[str] = None
    crisis_type: Optional[CrisisType] = None

    def __post_init__(self) -> None:
        if self.is_crisis != (self.crisis_type is not None):
            raise ValueError("crisis_type must be set exactly when is_crisis is true")
        if self.is_vulgar != (self.highlighted_content is not None):
            raise ValueError("highlighted_content must be set exactly when is_vulgar is true")

    @classmethod
    def build(
        cls,
        *,
        is_vulgar: bool,
        highlighted_content: Optional[str],
        is_crisis: bool,
        crisis_type: Optional[CrisisType],
    ) -> "AnalysisResult":
        if is_crisis and crisis_type is None:
            crisis_type = CrisisType.GENERAL
        if is_vulgar and highlighted_content is None:
            raise ValueError("vulgar verdicts need highlighted content")
        return cls(
            is_vulgar=is_vulgar,
            is_crisis=is_crisis,
            highlighted_content=highlighted_content if is_vulgar else None,
            crisis_type=crisis_type if is_crisis else None,
        )

    @classmethod
    def clean(cls) -> "AnalysisResult":
        return cls(is_vulgar=False, is_crisis=False)

    @property
    def outcome(self) -> str:
        if self.is_vulgar and self.is_crisis:
            return "vulgar_crisis"
        if self.is_vulgar:
            return "vulgar"
        if self.is_crisis:
            return f"crisis_{self.crisis_type.value}"  # type: ignore[union-attr]
        return "clean"

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_vulgar": self.is_vulgar,
            "is_crisis": self.is_crisis,
            "highlighted_content": self.highlighted_content,
            "crisis_type": self.crisis_type.value if self.crisis_type else None,
        }


@dataclass(frozen=True)
class ModerationResult:
    """Reject/allow verdict."""

    flagged: bool
    categories: tuple[str, ...] = ()
    reason: Optional[str] = None
    source: str = "local"

    @classmethod
    def clean(cls, source: str = "local") -> "ModerationResult":
        return cls(flagged=False, source=source)
