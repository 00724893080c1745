import pytest

from novachat.core.config import Settings
from novachat.core.storage import Storage

GEMINI_BASE = "https://gemini.test/v1beta"
GEMINI_URL = f"{GEMINI_BASE}/models/gemini-2.5-flash:generateContent"


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        GEMINI_API_KEY="test-gemini-key",
        GEMINI_API_BASE=GEMINI_BASE,
        DATABASE_URL=f"sqlite:///{tmp_path / 'novachat.db'}",
        UPSTREAM_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
def storage(settings):
    store = Storage(settings.database_path, token_ttl_hours=settings.AUTH_TOKEN_TTL_HOURS)
    store.initialize_database()
    return store
