"""Canned supportive messages returned alongside crisis verdicts."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Union

from safespeak.moderation.domain.verdicts import CrisisType

_HELPLINES = (
    "National Suicide Prevention Lifeline: 1-800-273-8255 (24/7). "
    "Crisis Text Line: text HOME to 741741 (24/7). "
    "Campus Security: 123-456-7890."
)

SUPPORT_MESSAGES: Mapping[CrisisType, str] = MappingProxyType(
    {
        CrisisType.SUICIDE: (
            "You matter to us. We noticed your message mentions thoughts of suicide. "
            "A counselor has been notified and will reach out to you directly. "
            "Your life is valuable and you deserve support during this difficult time. "
            + _HELPLINES
        ),
        CrisisType.DEPRESSION: (
            "We're here for you. We noticed signs of depression in your message. "
            "A counselor has been notified and will reach out to you shortly. "
            "Depression is treatable, and many people find their way through it with proper support. "
            + _HELPLINES
        ),
        CrisisType.GENERAL: (
            "Support is available. We noticed signs of distress in your message. "
            "You're not alone, and help is available. "
            "A counselor has been notified and will reach out to you shortly. "
            + _HELPLINES
        ),
    }
)


def response_for(crisis_type: Optional[Union[CrisisType, str]]) -> str:
    """Return the supportive message for a crisis category; unknown -> general."""
    try:
        key = CrisisType(crisis_type) if crisis_type is not None else CrisisType.GENERAL
    except ValueError:
        key = CrisisType.GENERAL
    return SUPPORT_MESSAGES[key]
