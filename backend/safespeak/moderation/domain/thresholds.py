"""Configuration helpers for content analysis thresholds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisThresholds:
    """Tuning constants gating the statistical classifiers.

    Scores must strictly exceed a threshold, and sentiment is only consulted
    for texts with strictly more than ``min_sentiment_tokens`` tokens.
    """

    toxicity: float = 0.7
    sentiment: float = 0.9
    min_sentiment_tokens: int = 10
    inference_timeout_seconds: float = 2.0

    @staticmethod
    def default() -> "AnalysisThresholds":
        return AnalysisThresholds()

    def is_toxic(self, score: float) -> bool:
        return score > self.toxicity

    def is_distressed(self, score: float) -> bool:
        return score > self.sentiment

    def long_enough_for_sentiment(self, text: str) -> bool:
        return len(text.split()) > self.min_sentiment_tokens

    @staticmethod
    def from_mapping(config: Mapping[str, Any]) -> "AnalysisThresholds":
        base = AnalysisThresholds.default()
        thresholds = AnalysisThresholds(
            toxicity=_probability(config.get("toxicity_threshold"), base.toxicity, "toxicity_threshold"),
            sentiment=_probability(config.get("sentiment_threshold"), base.sentiment, "sentiment_threshold"),
            min_sentiment_tokens=_non_negative_int(config.get("min_sentiment_tokens"), base.min_sentiment_tokens),
            inference_timeout_seconds=_positive_float(
                config.get("inference_timeout_seconds"), base.inference_timeout_seconds
            ),
        )
        return thresholds


def _probability(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("invalid %s %r; using %s", name, value, default)
        return default
    if not 0.0 <= number <= 1.0:
        logger.warning("%s %s outside [0, 1]; using %s", name, number, default)
        return default
    return number


def _non_negative_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 0 else default


def _positive_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def load_thresholds(path: str | Path | None) -> AnalysisThresholds:
    """Load thresholds from a YAML (or JSON) file."""

    if not path:
        return AnalysisThresholds.default()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("content analysis config missing at %s; using defaults", path)
        return AnalysisThresholds.default()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.warning("failed to parse content analysis YAML: %s", exc)
        return AnalysisThresholds.default()
    if not isinstance(data, Mapping):
        logger.warning("content analysis config invalid; falling back to defaults")
        return AnalysisThresholds.default()
    section = data.get("thresholds", data)
    if not isinstance(section, Mapping):
        return AnalysisThresholds.default()
    return AnalysisThresholds.from_mapping(section)
