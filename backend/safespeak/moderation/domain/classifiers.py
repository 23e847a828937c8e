"""Statistical text classifiers used as a best-effort supplement to the lexicon.

Classifiers are optional. Each one sits behind a :class:`ClassifierHandle`
that loads it in the background and turns every failure (load error,
inference error, invalid output, timeout) into "unavailable" so callers only
ever see ``None``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

from safespeak.obs import metrics

logger = logging.getLogger(__name__)


class ClassifierLabel(str, Enum):
    TOXIC = "toxic"
    NON_TOXIC = "non_toxic"
    NEGATIVE = "negative"
    POSITIVE = "positive"


class ClassifierOutputError(ValueError):
    """Raised when a classifier returns something other than a label and score."""


TOXICITY_LABELS: Mapping[str, ClassifierLabel] = {
    "toxic": ClassifierLabel.TOXIC,
    "severe_toxic": ClassifierLabel.TOXIC,
    "obscene": ClassifierLabel.TOXIC,
    "threat": ClassifierLabel.TOXIC,
    "insult": ClassifierLabel.TOXIC,
    "identity_hate": ClassifierLabel.TOXIC,
    "non_toxic": ClassifierLabel.NON_TOXIC,
    "non-toxic": ClassifierLabel.NON_TOXIC,
    "neutral": ClassifierLabel.NON_TOXIC,
}

SENTIMENT_LABELS: Mapping[str, ClassifierLabel] = {
    "negative": ClassifierLabel.NEGATIVE,
    "positive": ClassifierLabel.POSITIVE,
    "label_0": ClassifierLabel.NEGATIVE,
    "label_1": ClassifierLabel.POSITIVE,
}


@dataclass(frozen=True)
class ClassifierResult:
    """Top label and its confidence."""

    label: ClassifierLabel
    score: float

    @staticmethod
    def from_raw(raw: Any, label_map: Mapping[str, ClassifierLabel]) -> "ClassifierResult":
        """Validate pipeline-style output (``[{"label": ..., "score": ...}]``)."""
        candidate = raw
        # Pipelines return a list per input and sometimes a nested list of top-k.
        while isinstance(candidate, (list, tuple)):
            if not candidate:
                raise ClassifierOutputError("classifier returned no predictions")
            candidate = candidate[0]
        if not isinstance(candidate, Mapping):
            raise ClassifierOutputError(f"unexpected classifier output type {type(candidate).__name__}")
        label = candidate.get("label")
        score = candidate.get("score")
        if not isinstance(label, str):
            raise ClassifierOutputError("classifier output has no label")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ClassifierOutputError("classifier output has no numeric score")
        if not 0.0 <= float(score) <= 1.0:
            raise ClassifierOutputError(f"classifier score {score} outside [0, 1]")
        mapped = label_map.get(label.strip().lower())
        if mapped is None:
            raise ClassifierOutputError(f"unknown classifier label {label!r}")
        return ClassifierResult(label=mapped, score=float(score))


class TextClassifier(Protocol):
    """Classifier interface for dependency injection."""

    async def classify(self, text: str) -> ClassifierResult:
        ...


@dataclass
class TransformersClassifier(TextClassifier):
    """Adapter over a Hugging Face ``transformers`` text-classification pipeline."""

    pipeline: Callable[[str], Any]
    label_map: Mapping[str, ClassifierLabel]
    max_chars: int = 512

    async def classify(self, text: str) -> ClassifierResult:
        # Pipelines are synchronous and CPU bound; keep them off the event loop.
        raw = await asyncio.to_thread(self.pipeline, text[: self.max_chars])
        return ClassifierResult.from_raw(raw, self.label_map)


async def load_transformers_classifier(
    task: str,
    model: str,
    label_map: Mapping[str, ClassifierLabel],
) -> TransformersClassifier:
    """Build a pipeline in a worker thread; requires the ``ml`` extra."""

    def _build() -> Callable[[str], Any]:
        from transformers import pipeline

        return pipeline(task, model=model)

    logger.info("loading classifier model", extra={"task": task, "model": model})
    pipe = await asyncio.to_thread(_build)
    return TransformersClassifier(pipeline=pipe, label_map=label_map)


ClassifierLoader = Callable[[], Awaitable[TextClassifier]]


class ClassifierHandle:
    """Background-loaded classifier with non-blocking readiness checks."""

    def __init__(self, name: str, loader: Optional[ClassifierLoader] = None, *, timeout: float = 2.0) -> None:
        self.name = name
        self._loader = loader
        self._timeout = timeout
        self._classifier: Optional[TextClassifier] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._failed = False

    @classmethod
    def preloaded(cls, name: str, classifier: TextClassifier, *, timeout: float = 2.0) -> "ClassifierHandle":
        handle = cls(name, None, timeout=timeout)
        handle._classifier = classifier
        metrics.mark_classifier_ready(name, True)
        return handle

    @classmethod
    def disabled(cls, name: str) -> "ClassifierHandle":
        return cls(name, None)

    @property
    def ready(self) -> bool:
        return self._classifier is not None

    @property
    def state(self) -> str:
        if self._classifier is not None:
            return "ready"
        if self._failed:
            return "failed"
        if self._task is not None:
            return "loading"
        if self._loader is None:
            return "disabled"
        return "pending"

    def start(self) -> None:
        """Schedule loading on the running loop without waiting for it."""
        if self._loader is None or self._task is not None or self._classifier is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._load(), name=f"classifier-load:{self.name}")

    async def _load(self) -> None:
        loader = self._loader
        if loader is None:
            return
        try:
            classifier = await loader()
        except Exception:
            self._failed = True
            metrics.inc_classifier_failure(self.name, "load")
            metrics.mark_classifier_ready(self.name, False)
            logger.warning("classifier unavailable: name=%s", self.name, exc_info=True)
            return
        self._classifier = classifier
        metrics.mark_classifier_ready(self.name, True)
        logger.info("classifier ready: name=%s", self.name)

    async def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait for a pending load; never cancels the load itself."""
        if self._task is not None and not self._task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
            except asyncio.TimeoutError:
                pass
        return self.ready

    async def classify(self, text: str) -> Optional[ClassifierResult]:
        classifier = self._classifier
        if classifier is None:
            return None
        try:
            return await asyncio.wait_for(classifier.classify(text), timeout=self._timeout)
        except asyncio.TimeoutError:
            metrics.inc_classifier_failure(self.name, "timeout")
            logger.warning("classifier timed out: name=%s timeout=%s", self.name, self._timeout)
        except ClassifierOutputError as exc:
            metrics.inc_classifier_failure(self.name, "invalid_output")
            logger.warning("classifier returned invalid output: name=%s error=%s", self.name, exc)
        except Exception as exc:
            metrics.inc_classifier_failure(self.name, exc.__class__.__name__)
            logger.warning("classifier inference failed: name=%s", self.name, exc_info=True)
        return None

    async def close(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
