import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from safespeak.main import create_app
from safespeak.moderation.domain.analyzer import ContentAnalyzer
from safespeak.moderation.domain.container import ContentServices
from safespeak.moderation.domain.lexicon import CRISIS_LEXICON, MODERATION_LEXICON
from safespeak.moderation.domain.matcher import PatternMatcher
from safespeak.moderation.domain.moderator import ContentModerator, KeywordModerator


@pytest.fixture
def crisis_matcher() -> PatternMatcher:
    return PatternMatcher(CRISIS_LEXICON)


@pytest.fixture
def moderation_matcher() -> PatternMatcher:
    return PatternMatcher(MODERATION_LEXICON)


@pytest.fixture
def analyzer(crisis_matcher: PatternMatcher) -> ContentAnalyzer:
    return ContentAnalyzer(crisis_matcher)


@pytest.fixture
def services(analyzer: ContentAnalyzer, moderation_matcher: PatternMatcher) -> ContentServices:
    return ContentServices(
        analyzer=analyzer,
        moderator=ContentModerator(service=None, fallback=KeywordModerator(moderation_matcher)),
    )


@pytest_asyncio.fixture
async def api_client(services: ContentServices):
    app = create_app(services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
