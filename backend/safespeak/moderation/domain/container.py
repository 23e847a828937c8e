"""Service container wiring the analysis pipelines together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import httpx

from safespeak.moderation.domain.analyzer import ContentAnalyzer
from safespeak.moderation.domain.classifiers import (
	SENTIMENT_LABELS,
	TOXICITY_LABELS,
	ClassifierHandle,
	load_transformers_classifier,
)
from safespeak.moderation.domain.lexicon import CRISIS_LEXICON, MODERATION_LEXICON, load_lexicon
from safespeak.moderation.domain.matcher import PatternMatcher
from safespeak.moderation.domain.moderation_client import OpenAIModerationClient
from safespeak.moderation.domain.moderator import ContentModerator, KeywordModerator
from safespeak.moderation.domain.policies import (
	ContentPolicy,
	RejectAllowPolicy,
	SupportRoutingPolicy,
	UnknownPolicyError,
)
from safespeak.moderation.domain.thresholds import load_thresholds
from safespeak.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class ContentServices:
	"""Everything request handlers need, built once per process."""

	analyzer: ContentAnalyzer
	moderator: ContentModerator
	http: Optional[httpx.AsyncClient] = None
	policies: Mapping[str, ContentPolicy] = field(default_factory=dict)

	def __post_init__(self) -> None:
		if not self.policies:
			self.policies = {
				SupportRoutingPolicy.name: SupportRoutingPolicy(self.analyzer),
				RejectAllowPolicy.name: RejectAllowPolicy(self.moderator),
			}

	def policy(self, name: str) -> ContentPolicy:
		try:
			return self.policies[name]
		except KeyError:
			raise UnknownPolicyError(f"unknown content policy {name!r}") from None

	def start_classifiers(self) -> None:
		"""Kick off background model loading; returns immediately."""
		self.analyzer.toxicity.start()
		self.analyzer.sentiment.start()

	async def aclose(self) -> None:
		await self.analyzer.toxicity.close()
		await self.analyzer.sentiment.close()
		if self.http is not None:
			await self.http.aclose()


def build_services(config: Settings) -> ContentServices:
	thresholds = load_thresholds(config.content_analysis_config)
	crisis_lexicon = load_lexicon(config.lexicon_path, CRISIS_LEXICON)
	moderation_lexicon = load_lexicon(config.lexicon_path, MODERATION_LEXICON)

	if config.classifiers_enabled:
		toxicity = ClassifierHandle(
			"toxicity",
			lambda: load_transformers_classifier("text-classification", config.toxicity_model, TOXICITY_LABELS),
			timeout=thresholds.inference_timeout_seconds,
		)
		sentiment = ClassifierHandle(
			"sentiment",
			lambda: load_transformers_classifier("sentiment-analysis", config.sentiment_model, SENTIMENT_LABELS),
			timeout=thresholds.inference_timeout_seconds,
		)
	else:
		toxicity = ClassifierHandle.disabled("toxicity")
		sentiment = ClassifierHandle.disabled("sentiment")

	try:
		crisis_matcher = PatternMatcher(crisis_lexicon, highlight_template=config.highlight_template)
	except ValueError as exc:
		logger.warning("invalid highlight template (%s); using default", exc)
		crisis_matcher = PatternMatcher(crisis_lexicon)
	analyzer = ContentAnalyzer(
		crisis_matcher,
		toxicity=toxicity,
		sentiment=sentiment,
		thresholds=thresholds,
	)

	http: Optional[httpx.AsyncClient] = None
	service: Optional[OpenAIModerationClient] = None
	if config.openai_api_key:
		http = httpx.AsyncClient()
		service = OpenAIModerationClient(
			http=http,
			api_key=config.openai_api_key,
			model=config.openai_moderation_model,
			base_url=config.openai_base_url,
			request_timeout=config.moderation_timeout_seconds,
		)
	else:
		logger.info("no moderation API key configured; strict policy uses local keyword moderation")
	moderator = ContentModerator(service=service, fallback=KeywordModerator(PatternMatcher(moderation_lexicon)))

	return ContentServices(analyzer=analyzer, moderator=moderator, http=http)
