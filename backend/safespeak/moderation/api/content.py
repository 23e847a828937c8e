"""Content analysis API used by message and comment handlers."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from safespeak.moderation.domain.container import ContentServices
from safespeak.moderation.domain.policies import (
    REJECTED_MESSAGE,
    PolicyDecision,
    RecipientType,
    Submission,
    SubmissionKind,
    UnknownPolicyError,
)
from safespeak.moderation.domain.responses import response_for
from safespeak.moderation.domain.verdicts import AnalysisResult, CrisisType

router = APIRouter(prefix="/api/mod/v1/content", tags=["content-analysis"])


class ContentIn(BaseModel):
    content: str = Field(..., max_length=20000)


class SubmissionIn(ContentIn):
    recipient_type: RecipientType = RecipientType.PUBLIC
    is_anonymous: bool = True
    kind: SubmissionKind = SubmissionKind.MESSAGE


class AnalysisOut(BaseModel):
    is_vulgar: bool
    is_crisis: bool
    highlighted_content: Optional[str] = None
    crisis_type: Optional[CrisisType] = None
    support_message: Optional[str] = None

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisOut":
        return cls(
            is_vulgar=result.is_vulgar,
            is_crisis=result.is_crisis,
            highlighted_content=result.highlighted_content,
            crisis_type=result.crisis_type,
            support_message=response_for(result.crisis_type) if result.is_crisis else None,
        )


class ScreenOut(BaseModel):
    flagged: bool
    categories: list[str]


class DecisionOut(BaseModel):
    allowed: bool
    policy: str
    is_anonymous: bool
    reason: Optional[str] = None
    categories: list[str] = []
    highlighted_content: Optional[str] = None
    is_crisis: bool = False
    crisis_type: Optional[CrisisType] = None
    force_identity: bool = False
    notify_counselor: bool = False
    support_message: Optional[str] = None

    @classmethod
    def from_decision(cls, decision: PolicyDecision) -> "DecisionOut":
        return cls(
            allowed=decision.allowed,
            policy=decision.policy,
            is_anonymous=decision.is_anonymous,
            reason=decision.reason,
            categories=list(decision.categories),
            highlighted_content=decision.highlighted_content,
            is_crisis=decision.is_crisis,
            crisis_type=decision.crisis_type,
            force_identity=decision.force_identity,
            notify_counselor=decision.notify_counselor,
            support_message=decision.support_message,
        )


def get_services(request: Request) -> ContentServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="content_services_unavailable")
    return services


@router.post("/analyze", response_model=AnalysisOut)
async def analyze_content(payload: ContentIn, services: ContentServices = Depends(get_services)) -> AnalysisOut:
    result = await services.analyzer.analyze(payload.content)
    return AnalysisOut.from_result(result)


@router.post("/screen", response_model=ScreenOut)
async def screen_content(payload: ContentIn, services: ContentServices = Depends(get_services)) -> ScreenOut:
    result = await services.moderator.moderate(payload.content)
    if result.flagged:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": REJECTED_MESSAGE,
                "details": result.reason,
                "categories": list(result.categories),
            },
        )
    return ScreenOut(flagged=False, categories=[])


@router.post("/submissions", response_model=DecisionOut)
async def review_submission(
    payload: SubmissionIn,
    policy: str = Query("support", pattern=r"^(support|strict)$"),
    services: ContentServices = Depends(get_services),
) -> DecisionOut:
    try:
        content_policy = services.policy(policy)
    except UnknownPolicyError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    submission = Submission(
        content=payload.content,
        recipient_type=payload.recipient_type,
        is_anonymous=payload.is_anonymous,
        kind=payload.kind,
    )
    decision = await content_policy.review(submission)
    out = DecisionOut.from_decision(decision)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=out.model_dump(mode="json"))
    return out


@router.get("/classifiers")
async def classifier_status(services: ContentServices = Depends(get_services)) -> dict[str, str]:
    return services.analyzer.classifier_states()
