"""Clients for third-party moderation services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx

from safespeak.moderation.domain.verdicts import ModerationResult


class ModerationServiceError(RuntimeError):
    """Transport failure, non-2xx response, or malformed moderation payload."""


class ModerationService(Protocol):
    """Remote multi-category moderation classifier."""

    async def moderate(self, text: str) -> ModerationResult:
        ...


@dataclass
class OpenAIModerationClient(ModerationService):
    """Calls the OpenAI ``/moderations`` endpoint."""

    http: httpx.AsyncClient
    api_key: str
    model: str = "omni-moderation-latest"
    base_url: str = "https://api.openai.com/v1"
    request_timeout: float = 5.0

    async def moderate(self, text: str) -> ModerationResult:
        try:
            response = await self.http.post(
                f"{self.base_url.rstrip('/')}/moderations",
                json={"input": text, "model": self.model},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ModerationServiceError(f"moderation service returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ModerationServiceError(f"moderation service unreachable: {exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise ModerationServiceError("moderation service returned invalid JSON") from exc
        return _parse_result(payload)


def _parse_result(payload: Any) -> ModerationResult:
    if not isinstance(payload, Mapping):
        raise ModerationServiceError("moderation payload is not an object")
    results = payload.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], Mapping):
        raise ModerationServiceError("moderation payload has no results")
    first = results[0]
    categories = first.get("categories", {})
    if not isinstance(categories, Mapping):
        raise ModerationServiceError("moderation categories are not an object")
    flagged_categories = tuple(name for name, value in categories.items() if value is True)
    flagged = bool(first.get("flagged", bool(flagged_categories)))
    reason = f"Content flagged for: {', '.join(flagged_categories)}" if flagged_categories else None
    return ModerationResult(flagged=flagged, categories=flagged_categories, reason=reason, source="service")
