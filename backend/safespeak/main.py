"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from safespeak.api.errors import install_error_handlers
from safespeak.moderation import ContentServices, build_services
from safespeak.moderation import router as content_router
from safespeak.obs import init as obs_init
from safespeak.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	owned = getattr(app.state, "services", None) is None
	if owned:
		app.state.services = build_services(settings)
	services: ContentServices = app.state.services
	# Models load in the background; requests are served with lexicon-only
	# analysis until they are ready.
	services.start_classifiers()
	logger.info("content services started", extra={"classifiers": services.analyzer.classifier_states()})
	try:
		yield
	finally:
		if owned:
			await services.aclose()
			app.state.services = None


def create_app(services: Optional[ContentServices] = None) -> FastAPI:
	application = FastAPI(title="SafeSpeak content analysis", lifespan=lifespan)
	application.state.services = services
	obs_init(application)
	install_error_handlers(application)
	application.include_router(content_router)

	@application.get("/health/live")
	async def live() -> dict[str, str]:
		return {"status": "ok"}

	@application.get("/health/ready")
	async def ready(request: Request) -> dict[str, object]:
		current: Optional[ContentServices] = getattr(request.app.state, "services", None)
		if current is None:
			return {"status": "starting", "classifiers": {}}
		# Classifiers are optional, so they never fail readiness.
		return {"status": "ok", "classifiers": current.analyzer.classifier_states()}

	return application


app = create_app()
