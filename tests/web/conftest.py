import pytest
from fastapi.testclient import TestClient

from agent_memories import config
from agent_memories.web.app import app
from agent_memories.web.dependencies import set_memory_context

API_KEY = "test-api-key"


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def client(memory_context, monkeypatch):
    """TestClient with the shared memory context installed and a known API key."""
    monkeypatch.setattr(config, "API_KEY", API_KEY)
    set_memory_context(memory_context)
    # Not used as a context manager: the lifespan would build a context from configuration
    yield TestClient(app)
    set_memory_context(None)
