import os
import sys
from types import SimpleNamespace

os.environ["OPENAI_API_KEY"] = ""
os.environ["HUBSPOT_API_KEY"] = ""

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if ROOT not in sys.path:
    sys.path.append(ROOT)

import pytest

from softwhere.ai_estimator import AIEstimator
from softwhere.db import QuoteStore
from softwhere.orchestrator import EstimateOrchestrator


class FakeCompletions:
    """Replays canned replies; an Exception instance is raised instead of returned."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeOpenAI:
    def __init__(self, *replies):
        self.chat = SimpleNamespace(completions=FakeCompletions(replies))


def make_ai(*replies, max_attempts=3):
    return AIEstimator(api_key="", client=FakeOpenAI(*replies), max_attempts=max_attempts, backoff=0)


@pytest.fixture
def quote_store(tmp_path):
    return QuoteStore(db_path=str(tmp_path / "quotes.sqlite"))


@pytest.fixture
def disabled_ai():
    return AIEstimator(api_key="")


@pytest.fixture
def orchestrator(tmp_path, quote_store, disabled_ai):
    return EstimateOrchestrator(db_path=str(tmp_path / "quotes.sqlite"), ai_estimator=disabled_ai, quote_store=quote_store)


@pytest.fixture
def client(orchestrator):
    from fastapi.testclient import TestClient
    from softwhere.main import app, get_orchestrator

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
