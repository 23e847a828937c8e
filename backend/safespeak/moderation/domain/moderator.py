"""Reject/allow moderation with a local keyword fallback."""

from __future__ import annotations

import logging
from typing import Any, Optional

from safespeak.moderation.domain.lexicon import MODERATION_LEXICON
from safespeak.moderation.domain.matcher import PatternMatcher
from safespeak.moderation.domain.moderation_client import ModerationService, ModerationServiceError
from safespeak.moderation.domain.verdicts import ModerationResult
from safespeak.obs import metrics

logger = logging.getLogger(__name__)


class KeywordModerator:
    """Scan every moderation category and stop at the first hit in each."""

    def __init__(self, matcher: Optional[PatternMatcher] = None) -> None:
        self.matcher = matcher or PatternMatcher(MODERATION_LEXICON)

    def moderate(self, text: str) -> ModerationResult:
        flagged: list[str] = []
        for category in self.matcher.lexicon.names():
            if self.matcher.first_match(text, category) is not None:
                flagged.append(category)
        if not flagged:
            return ModerationResult.clean(source="local")
        return ModerationResult(
            flagged=True,
            categories=tuple(flagged),
            reason=f"Content contains inappropriate language ({', '.join(flagged)})",
            source="local",
        )


class ContentModerator:
    """Prefer the remote moderation service; fall back to the keyword scan."""

    def __init__(self, service: Optional[ModerationService] = None, fallback: Optional[KeywordModerator] = None) -> None:
        self.service = service
        self.fallback = fallback or KeywordModerator()

    async def moderate(self, text: Any) -> ModerationResult:
        content = "" if text is None else str(text)
        result: Optional[ModerationResult] = None
        if self.service is not None:
            try:
                result = await self.service.moderate(content)
            except ModerationServiceError as exc:
                metrics.inc_moderation_fallback("service_error")
                logger.warning("moderation service failed, falling back to local moderation: %s", exc)
            except Exception:
                metrics.inc_moderation_fallback("unexpected_error")
                logger.exception("moderation service crashed, falling back to local moderation")
        if result is None:
            result = self.fallback.moderate(content)
        metrics.inc_moderation_result(result.source, result.flagged)
        return result
