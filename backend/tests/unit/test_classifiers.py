from __future__ import annotations

import asyncio

import pytest

from safespeak.moderation.domain.classifiers import (
    SENTIMENT_LABELS,
    TOXICITY_LABELS,
    ClassifierHandle,
    ClassifierLabel,
    ClassifierOutputError,
    ClassifierResult,
    TransformersClassifier,
)


class _FixedClassifier:
    def __init__(self, result: ClassifierResult) -> None:
        self.result = result

    async def classify(self, text: str) -> ClassifierResult:
        return self.result


class _BadOutputClassifier:
    async def classify(self, text: str) -> ClassifierResult:
        return ClassifierResult.from_raw([{"label": "maybe", "score": 0.5}], TOXICITY_LABELS)


def test_from_raw_accepts_pipeline_output() -> None:
    result = ClassifierResult.from_raw([{"label": "toxic", "score": 0.91}], TOXICITY_LABELS)

    assert result == ClassifierResult(label=ClassifierLabel.TOXIC, score=0.91)


def test_from_raw_unwraps_top_k_lists_and_normalizes_labels() -> None:
    raw = [[{"label": "NEGATIVE", "score": 0.97}, {"label": "POSITIVE", "score": 0.03}]]

    assert ClassifierResult.from_raw(raw, SENTIMENT_LABELS).label is ClassifierLabel.NEGATIVE
    assert ClassifierResult.from_raw({"label": "LABEL_1", "score": 1}, SENTIMENT_LABELS).label is ClassifierLabel.POSITIVE


@pytest.mark.parametrize(
    "raw",
    [
        [],
        "toxic",
        [{"score": 0.5}],
        [{"label": "toxic"}],
        [{"label": "toxic", "score": "high"}],
        [{"label": "toxic", "score": True}],
        [{"label": "toxic", "score": 1.5}],
        [{"label": "toxic", "score": -0.1}],
        [{"label": "spam", "score": 0.5}],
    ],
)
def test_from_raw_rejects_malformed_output(raw) -> None:
    with pytest.raises(ClassifierOutputError):
        ClassifierResult.from_raw(raw, TOXICITY_LABELS)


def test_disabled_handle_reports_state() -> None:
    handle = ClassifierHandle.disabled("toxicity")

    assert handle.ready is False
    assert handle.state == "disabled"


@pytest.mark.asyncio
async def test_disabled_handle_classifies_to_none() -> None:
    assert await ClassifierHandle.disabled("toxicity").classify("hello") is None


@pytest.mark.asyncio
async def test_handle_loads_in_background() -> None:
    expected = ClassifierResult(label=ClassifierLabel.NEGATIVE, score=0.99)

    async def _loader():
        return _FixedClassifier(expected)

    handle = ClassifierHandle("sentiment", _loader)
    assert handle.state == "pending"

    handle.start()
    assert await handle.wait_ready(1.0) is True
    assert handle.state == "ready"
    assert await handle.classify("anything") == expected


@pytest.mark.asyncio
async def test_failed_load_leaves_handle_unavailable() -> None:
    async def _loader():
        raise OSError("model weights not found")

    handle = ClassifierHandle("toxicity", _loader)
    handle.start()

    assert await handle.wait_ready(1.0) is False
    assert handle.state == "failed"
    assert await handle.classify("anything") is None


@pytest.mark.asyncio
async def test_wait_ready_timeout_does_not_cancel_loading() -> None:
    release = asyncio.Event()

    async def _loader():
        await release.wait()
        return _FixedClassifier(ClassifierResult(label=ClassifierLabel.TOXIC, score=0.8))

    handle = ClassifierHandle("toxicity", _loader)
    handle.start()

    assert await handle.wait_ready(0.01) is False
    assert handle.state == "loading"

    release.set()
    assert await handle.wait_ready(1.0) is True


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
    loads = 0

    async def _loader():
        nonlocal loads
        loads += 1
        return _FixedClassifier(ClassifierResult(label=ClassifierLabel.TOXIC, score=0.8))

    handle = ClassifierHandle("toxicity", _loader)
    handle.start()
    handle.start()
    await handle.wait_ready(1.0)
    handle.start()

    assert loads == 1


@pytest.mark.asyncio
async def test_close_cancels_pending_load() -> None:
    async def _loader():
        await asyncio.sleep(60)
        return _FixedClassifier(ClassifierResult(label=ClassifierLabel.TOXIC, score=0.8))

    handle = ClassifierHandle("toxicity", _loader)
    handle.start()
    await handle.close()

    assert handle.ready is False


@pytest.mark.asyncio
async def test_invalid_output_is_treated_as_unavailable() -> None:
    handle = ClassifierHandle.preloaded("toxicity", _BadOutputClassifier())

    assert await handle.classify("hello") is None


@pytest.mark.asyncio
async def test_transformers_adapter_truncates_and_validates() -> None:
    seen: list[str] = []

    def _pipeline(text: str):
        seen.append(text)
        return [{"label": "toxic", "score": 0.88}]

    classifier = TransformersClassifier(pipeline=_pipeline, label_map=TOXICITY_LABELS, max_chars=5)

    result = await classifier.classify("abcdefghij")

    assert seen == ["abcde"]
    assert result.label is ClassifierLabel.TOXIC
    assert result.score == pytest.approx(0.88)


@pytest.mark.asyncio
async def test_start_without_loader_is_a_no_op() -> None:
    handle = ClassifierHandle("toxicity")
    handle.start()
    await handle._load()

    assert await handle.wait_ready(0.01) is False
    assert handle.state == "disabled"
