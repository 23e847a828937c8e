from __future__ import annotations

import asyncio

import pytest

from safespeak.moderation.domain.analyzer import ContentAnalyzer
from safespeak.moderation.domain.classifiers import ClassifierHandle, ClassifierLabel, ClassifierResult
from safespeak.moderation.domain.matcher import PatternMatcher
from safespeak.moderation.domain.thresholds import AnalysisThresholds
from safespeak.moderation.domain.verdicts import AnalysisResult, CrisisType

HL = '<span class="vulgar-highlight">{}</span>'
LONG_NEUTRAL = "I have been thinking about the exam results all week long now"
TEN_TOKENS = "I have been thinking about the exam results all week"


class StubClassifier:
    """Returns a fixed prediction and counts calls."""

    def __init__(self, label: ClassifierLabel, score: float) -> None:
        self.result = ClassifierResult(label=label, score=score)
        self.calls: list[str] = []

    async def classify(self, text: str) -> ClassifierResult:
        self.calls.append(text)
        return self.result


class FailingClassifier:
    def __init__(self) -> None:
        self.calls = 0

    async def classify(self, text: str) -> ClassifierResult:
        self.calls += 1
        raise RuntimeError("model exploded")


class SlowClassifier:
    async def classify(self, text: str) -> ClassifierResult:
        await asyncio.sleep(5)
        return ClassifierResult(label=ClassifierLabel.TOXIC, score=1.0)


def _analyzer(matcher: PatternMatcher, *, toxicity=None, sentiment=None, thresholds=None) -> ContentAnalyzer:
    return ContentAnalyzer(
        matcher,
        toxicity=ClassifierHandle.preloaded("toxicity", toxicity) if toxicity else None,
        sentiment=ClassifierHandle.preloaded("sentiment", sentiment) if sentiment else None,
        thresholds=thresholds,
    )


@pytest.mark.asyncio
async def test_vulgar_word_is_flagged_and_highlighted(analyzer: ContentAnalyzer) -> None:
    result = await analyzer.analyze("this is stupid")

    assert result.is_vulgar is True
    assert result.highlighted_content == "this is " + HL.format("stupid")
    assert result.is_crisis is False
    assert result.crisis_type is None


@pytest.mark.asyncio
async def test_suicide_wins_over_depression(analyzer: ContentAnalyzer) -> None:
    result = await analyzer.analyze("I feel hopeless and I want to kill myself")

    assert result.is_crisis is True
    assert result.crisis_type is CrisisType.SUICIDE
    assert result.is_vulgar is False
    assert result.highlighted_content is None


@pytest.mark.asyncio
async def test_depression_keywords_only(analyzer: ContentAnalyzer) -> None:
    result = await analyzer.analyze("I feel hopeless and empty")

    assert result.is_crisis is True
    assert result.crisis_type is CrisisType.DEPRESSION


@pytest.mark.asyncio
async def test_neutral_text_is_clean(analyzer: ContentAnalyzer) -> None:
    result = await analyzer.analyze("The weather is nice today")

    assert result == AnalysisResult.clean()
    assert result.highlighted_content is None
    assert result.crisis_type is None


@pytest.mark.asyncio
async def test_vulgar_and_crisis_can_both_apply(analyzer: ContentAnalyzer) -> None:
    result = await analyzer.analyze("this stupid semester makes me want to die")

    assert result.is_vulgar is True
    assert result.crisis_type is CrisisType.SUICIDE


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["", "   ", None, 12345])
async def test_empty_and_non_text_input_is_clean(analyzer: ContentAnalyzer, value) -> None:
    assert await analyzer.analyze(value) == AnalysisResult.clean()


@pytest.mark.asyncio
async def test_analyze_is_idempotent(analyzer: ContentAnalyzer) -> None:
    text = "you idiot, I feel worthless"
    first = await analyzer.analyze(text)
    second = await analyzer.analyze(text)

    assert first == second


@pytest.mark.asyncio
async def test_failing_classifiers_fall_back_to_lexicon(crisis_matcher: PatternMatcher) -> None:
    toxicity = FailingClassifier()
    sentiment = FailingClassifier()
    analyzer = _analyzer(crisis_matcher, toxicity=toxicity, sentiment=sentiment)

    result = await analyzer.analyze(LONG_NEUTRAL)

    assert result == AnalysisResult.clean()
    assert toxicity.calls == 1
    assert sentiment.calls == 1
    assert (await analyzer.analyze("I feel hopeless")).crisis_type is CrisisType.DEPRESSION


@pytest.mark.asyncio
async def test_toxicity_classifier_skipped_when_lexicon_matches(crisis_matcher: PatternMatcher) -> None:
    toxicity = StubClassifier(ClassifierLabel.TOXIC, 0.99)
    analyzer = _analyzer(crisis_matcher, toxicity=toxicity)

    result = await analyzer.analyze("this is stupid")

    assert toxicity.calls == []
    assert result.highlighted_content == "this is " + HL.format("stupid")


@pytest.mark.asyncio
async def test_toxicity_classifier_wraps_whole_text(crisis_matcher: PatternMatcher) -> None:
    toxicity = StubClassifier(ClassifierLabel.TOXIC, 0.95)
    analyzer = _analyzer(crisis_matcher, toxicity=toxicity)

    result = await analyzer.analyze("You are a terrible person")

    assert toxicity.calls == ["You are a terrible person"]
    assert result.is_vulgar is True
    assert result.highlighted_content == HL.format("You are a terrible person")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "label,score",
    [(ClassifierLabel.TOXIC, 0.7), (ClassifierLabel.TOXIC, 0.3), (ClassifierLabel.NON_TOXIC, 0.99)],
)
async def test_toxicity_needs_toxic_label_above_threshold(crisis_matcher: PatternMatcher, label, score) -> None:
    analyzer = _analyzer(crisis_matcher, toxicity=StubClassifier(label, score))

    result = await analyzer.analyze("You are a terrible person")

    assert result.is_vulgar is False


@pytest.mark.asyncio
async def test_sentiment_flags_long_negative_text_as_depression(crisis_matcher: PatternMatcher) -> None:
    sentiment = StubClassifier(ClassifierLabel.NEGATIVE, 0.95)
    analyzer = _analyzer(crisis_matcher, sentiment=sentiment)

    result = await analyzer.analyze(LONG_NEUTRAL)

    assert result.is_crisis is True
    assert result.crisis_type is CrisisType.DEPRESSION
    assert len(sentiment.calls) == 1


@pytest.mark.asyncio
async def test_sentiment_ignores_short_text(crisis_matcher: PatternMatcher) -> None:
    sentiment = StubClassifier(ClassifierLabel.NEGATIVE, 0.99)
    analyzer = _analyzer(crisis_matcher, sentiment=sentiment)

    result = await analyzer.analyze(TEN_TOKENS)

    assert result.is_crisis is False
    assert sentiment.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "label,score",
    [(ClassifierLabel.NEGATIVE, 0.9), (ClassifierLabel.POSITIVE, 0.99)],
)
async def test_sentiment_needs_negative_label_above_threshold(crisis_matcher: PatternMatcher, label, score) -> None:
    analyzer = _analyzer(crisis_matcher, sentiment=StubClassifier(label, score))

    assert (await analyzer.analyze(LONG_NEUTRAL)).is_crisis is False


@pytest.mark.asyncio
async def test_sentiment_never_overrides_keyword_crisis(crisis_matcher: PatternMatcher) -> None:
    sentiment = StubClassifier(ClassifierLabel.NEGATIVE, 0.99)
    analyzer = _analyzer(crisis_matcher, sentiment=sentiment)

    result = await analyzer.analyze("honestly I keep thinking everyone would be better off dead without me around")

    assert result.crisis_type is CrisisType.SUICIDE
    assert sentiment.calls == []


@pytest.mark.asyncio
async def test_custom_thresholds_are_respected(crisis_matcher: PatternMatcher) -> None:
    thresholds = AnalysisThresholds(toxicity=0.2, sentiment=0.5, min_sentiment_tokens=2)
    analyzer = _analyzer(
        crisis_matcher,
        toxicity=StubClassifier(ClassifierLabel.TOXIC, 0.3),
        sentiment=StubClassifier(ClassifierLabel.NEGATIVE, 0.6),
        thresholds=thresholds,
    )

    result = await analyzer.analyze("mondays are awful")

    assert result.is_vulgar is True
    assert result.crisis_type is CrisisType.DEPRESSION


@pytest.mark.asyncio
async def test_loading_classifier_is_treated_as_unavailable(crisis_matcher: PatternMatcher) -> None:
    release = asyncio.Event()
    toxicity = StubClassifier(ClassifierLabel.TOXIC, 0.99)

    async def _slow_loader():
        await release.wait()
        return toxicity

    handle = ClassifierHandle("toxicity", _slow_loader)
    analyzer = ContentAnalyzer(crisis_matcher, toxicity=handle)
    handle.start()

    result = await analyzer.analyze("You are a terrible person")

    assert result.is_vulgar is False
    assert handle.state == "loading"
    assert toxicity.calls == []

    release.set()
    assert await handle.wait_ready(1.0) is True
    assert (await analyzer.analyze("You are a terrible person")).is_vulgar is True


@pytest.mark.asyncio
async def test_hanging_classifier_times_out(crisis_matcher: PatternMatcher) -> None:
    analyzer = ContentAnalyzer(
        crisis_matcher,
        toxicity=ClassifierHandle.preloaded("toxicity", SlowClassifier(), timeout=0.01),
    )

    result = await asyncio.wait_for(analyzer.analyze("You are a terrible person"), timeout=2)

    assert result == AnalysisResult.clean()


def test_classifier_states(analyzer: ContentAnalyzer) -> None:
    assert analyzer.classifier_states() == {"toxicity": "disabled", "sentiment": "disabled"}
