import os
import sys
import random
import pytest
import fakeredis

# Ensure repo root is on sys.path so tests can import top-level modules (e.g., scorecard.py)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Ensure env for create_app
os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('REDIS_URL', 'redis://localhost:6379/0')

from interview_types import InterviewQuestion  # noqa: E402
from orchestrator import ScoringOrchestrator  # noqa: E402
from rate_limiter import InMemoryUsageStore, RateLimiter  # noqa: E402
from remote_scorer import AdapterResult  # noqa: E402
from utilities.errors import NetworkError  # noqa: E402


@pytest.fixture()
def fake_redis_server():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def patch_redis(monkeypatch, fake_redis_server):
    import redis
    monkeypatch.setattr(redis, 'from_url', lambda *args, **kwargs: fake_redis_server)
    yield


@pytest.fixture()
def frontend_question():
    return InterviewQuestion(id='q-1', category='frontend',
                             question='React 성능 최적화 경험을 설명해주세요.', difficulty='medium')


class FakeRemote:
    """Stand-in for the remote adapter; records calls and replays a scripted outcome."""

    def __init__(self, result=None, questions=None, raises=None):
        self.result = result
        self.questions = questions
        self.raises = raises
        self.score_calls = []
        self.question_calls = []

    def score(self, question_id, question, answer, category, custom_category=None):
        self.score_calls.append((question_id, question, answer, category, custom_category))
        if self.raises:
            raise self.raises
        return self.result or AdapterResult(error=NetworkError('remote down'), attempts=4)

    def generate(self, category, custom_category=None, count=25, min_yield=20):
        self.question_calls.append((category, custom_category, count, min_yield))
        if self.raises:
            raise self.raises
        if self.questions is None:
            return AdapterResult(error=NetworkError('remote down'), attempts=4)
        return AdapterResult(value=self.questions, attempts=1)


@pytest.fixture()
def fake_remote():
    return FakeRemote()


@pytest.fixture()
def make_orchestrator():
    def _make(remote=None, healthy=True, limits=None):
        remote = remote or FakeRemote()
        return ScoringOrchestrator(
            limiter=RateLimiter(store=InMemoryUsageStore(), limits=limits),
            health_check=lambda: {'available': healthy, 'error': None if healthy else 'offline'},
            remote_score=remote.score,
            remote_questions=remote.generate,
            rng=random.Random(7),
        )
    return _make


@pytest.fixture()
def app():
    from app import create_app
    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def offline_remote(app, make_orchestrator):
    # Route tests run against the heuristic path unless they swap in their own remote
    orchestrator = make_orchestrator(healthy=False)
    app.extensions['interview']['orchestrator'] = orchestrator
    return orchestrator
