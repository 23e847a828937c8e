"""Content policies applied by message and comment handlers.

Two strategies share the :class:`ContentPolicy` interface but keep their own
verdicts: ``support`` routes distress to counselors and rejects vulgar
language with highlighting, ``strict`` rejects anything the moderation
classifier (or keyword scan) flags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from safespeak.moderation.domain.analyzer import ContentAnalyzer
from safespeak.moderation.domain.moderator import ContentModerator
from safespeak.moderation.domain.responses import response_for
from safespeak.moderation.domain.verdicts import CrisisType
from safespeak.obs import metrics

logger = logging.getLogger(__name__)

REJECTED_MESSAGE = "Message contains inappropriate content"


class RecipientType(str, Enum):
    PUBLIC = "public"
    FACULTY = "faculty"
    COUNSELOR = "counselor"


class SubmissionKind(str, Enum):
    MESSAGE = "message"
    COMMENT = "comment"


@dataclass(frozen=True)
class Submission:
    content: str
    recipient_type: RecipientType = RecipientType.PUBLIC
    is_anonymous: bool = True
    kind: SubmissionKind = SubmissionKind.MESSAGE


@dataclass(frozen=True)
class PolicyDecision:
    """What the caller should do with a submission."""

    allowed: bool
    policy: str
    is_anonymous: bool
    reason: Optional[str] = None
    categories: tuple[str, ...] = ()
    highlighted_content: Optional[str] = None
    is_crisis: bool = False
    crisis_type: Optional[CrisisType] = None
    force_identity: bool = False
    notify_counselor: bool = False
    support_message: Optional[str] = None


class ContentPolicy(Protocol):
    name: str

    async def review(self, submission: Submission) -> PolicyDecision:
        ...


class UnknownPolicyError(LookupError):
    pass


class SupportRoutingPolicy(ContentPolicy):
    name = "support"

    def __init__(self, analyzer: ContentAnalyzer) -> None:
        self.analyzer = analyzer

    async def review(self, submission: Submission) -> PolicyDecision:
        verdict = await self.analyzer.analyze(submission.content)
        if verdict.is_vulgar:
            decision = PolicyDecision(
                allowed=False,
                policy=self.name,
                is_anonymous=submission.is_anonymous,
                reason=REJECTED_MESSAGE,
                categories=("vulgar",),
                highlighted_content=verdict.highlighted_content,
                is_crisis=verdict.is_crisis,
                crisis_type=verdict.crisis_type,
            )
        elif verdict.is_crisis:
            # Public suicide-related posts lose anonymity so a counselor can reach the author.
            escalate = (
                verdict.crisis_type is CrisisType.SUICIDE and submission.recipient_type is RecipientType.PUBLIC
            )
            decision = PolicyDecision(
                allowed=True,
                policy=self.name,
                is_anonymous=submission.is_anonymous and not escalate,
                is_crisis=True,
                crisis_type=verdict.crisis_type,
                force_identity=escalate and submission.is_anonymous,
                notify_counselor=escalate,
                support_message=response_for(verdict.crisis_type),
            )
        else:
            decision = PolicyDecision(allowed=True, policy=self.name, is_anonymous=submission.is_anonymous)
        _record(decision, submission)
        return decision


class RejectAllowPolicy(ContentPolicy):
    name = "strict"

    def __init__(self, moderator: ContentModerator) -> None:
        self.moderator = moderator

    async def review(self, submission: Submission) -> PolicyDecision:
        verdict = await self.moderator.moderate(submission.content)
        decision = PolicyDecision(
            allowed=not verdict.flagged,
            policy=self.name,
            is_anonymous=submission.is_anonymous,
            reason=verdict.reason,
            categories=verdict.categories,
        )
        _record(decision, submission)
        return decision


def _record(decision: PolicyDecision, submission: Submission) -> None:
    metrics.inc_policy_decision(decision.policy, submission.kind.value, decision.allowed)
    if decision.notify_counselor:
        logger.warning(
            "crisis escalation required",
            extra={"policy": decision.policy, "kind": submission.kind.value, "crisis_type": "suicide"},
        )
    elif not decision.allowed:
        logger.info(
            "submission rejected",
            extra={"policy": decision.policy, "kind": submission.kind.value, "categories": list(decision.categories)},
        )
