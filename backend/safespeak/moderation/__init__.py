"""Moderation package integration helpers exposed to the application."""

from safespeak.moderation.api import router
from safespeak.moderation.domain.container import ContentServices, build_services

__all__ = ["router", "ContentServices", "build_services"]
