"""Support-routing analysis: vulgarity highlighting plus crisis detection."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from safespeak.moderation.domain.classifiers import ClassifierHandle, ClassifierLabel
from safespeak.moderation.domain.lexicon import DEPRESSION, SUICIDE, VULGAR
from safespeak.moderation.domain.matcher import PatternMatcher
from safespeak.moderation.domain.thresholds import AnalysisThresholds
from safespeak.moderation.domain.verdicts import AnalysisResult, CrisisType
from safespeak.obs import metrics

logger = logging.getLogger(__name__)


class ContentAnalyzer:
    """Merge lexicon matches and optional classifier signals into one verdict.

    Order is fixed: vulgar words, then suicide keywords, then depression
    keywords, then the classifiers. Classifiers only fill gaps the lexicon
    left open, so a lexicon hit is never overridden and suicide is never
    downgraded.
    """

    def __init__(
        self,
        matcher: PatternMatcher,
        *,
        toxicity: Optional[ClassifierHandle] = None,
        sentiment: Optional[ClassifierHandle] = None,
        thresholds: Optional[AnalysisThresholds] = None,
    ) -> None:
        self.matcher = matcher
        self.toxicity = toxicity or ClassifierHandle.disabled("toxicity")
        self.sentiment = sentiment or ClassifierHandle.disabled("sentiment")
        self.thresholds = thresholds or AnalysisThresholds.default()

    async def analyze(self, text: Any) -> AnalysisResult:
        start = time.perf_counter()
        content = _coerce_text(text)

        vulgar = self.matcher.matches(content, VULGAR)
        is_vulgar = vulgar.matched
        highlighted = self.matcher.highlight(content, vulgar) if is_vulgar else None

        crisis_type: Optional[CrisisType] = None
        if self.matcher.matches(content, SUICIDE).matched:
            crisis_type = CrisisType.SUICIDE
        elif self.matcher.matches(content, DEPRESSION).matched:
            crisis_type = CrisisType.DEPRESSION
        is_crisis = crisis_type is not None

        if content.strip():
            if not is_vulgar and await self._is_toxic(content):
                is_vulgar = True
                highlighted = self.matcher.wrap(content)
            if not is_crisis and await self._is_distressed(content):
                is_crisis = True
                crisis_type = CrisisType.DEPRESSION

        result = AnalysisResult.build(
            is_vulgar=is_vulgar,
            highlighted_content=highlighted,
            is_crisis=is_crisis,
            crisis_type=crisis_type,
        )
        elapsed = time.perf_counter() - start
        metrics.observe_analysis(result.outcome, elapsed)
        logger.info(
            "content analyzed",
            extra={
                "outcome": result.outcome,
                "vulgar_terms": list(vulgar.terms),
                "latency_ms": round(elapsed * 1000, 3),
            },
        )
        return result

    async def _is_toxic(self, content: str) -> bool:
        if not self.toxicity.ready:
            return False
        prediction = await self.toxicity.classify(content)
        if prediction is None:
            return False
        return prediction.label is ClassifierLabel.TOXIC and self.thresholds.is_toxic(prediction.score)

    async def _is_distressed(self, content: str) -> bool:
        # Short negative statements are too noisy to route to a counselor.
        if not self.thresholds.long_enough_for_sentiment(content):
            return False
        if not self.sentiment.ready:
            return False
        prediction = await self.sentiment.classify(content)
        if prediction is None:
            return False
        return prediction.label is ClassifierLabel.NEGATIVE and self.thresholds.is_distressed(prediction.score)

    def classifier_states(self) -> dict[str, str]:
        return {self.toxicity.name: self.toxicity.state, self.sentiment.name: self.sentiment.state}


def _coerce_text(text: Any) -> str:
    if text is None:
        return ""
    if isinstance(text, str):
        return text
    return str(text)
