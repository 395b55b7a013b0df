import pytest
from fastapi.testclient import TestClient
from tortoise import Tortoise

from imposter.app import create_app
from imposter.auth_utils import create_access_token
from imposter.config import Config
from imposter.schemas import StatsResponse

TEST_SECRET = "test-secret-for-imposter-tokens-0123456789"


class TestConfig(Config):
    JWT_SECRET = TEST_SECRET
    DATABASE_URL = ""
    RESET_DELAY_SEC = 0
    LOG_LEVEL = "WARNING"


class RecordingStatsStore:
    """In-memory stand-in for the Tortoise-backed store."""

    def __init__(self):
        self.applied = []

    async def apply_round_outcome(self, user_id, delta):
        self.applied.append((user_id, delta))

    async def read_stats(self, user_id):
        return StatsResponse(user_id=user_id)


@pytest.fixture()
def stats_store():
    return RecordingStatsStore()


@pytest.fixture()
def app(stats_store):
    application = create_app(TestConfig)
    application.state.game.stats_store = stats_store
    return application


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def secret():
    return TEST_SECRET


@pytest.fixture()
def fresh_app():
    """An app wired to the real Tortoise-backed stats store."""
    return create_app(TestConfig)


@pytest.fixture()
def make_token():
    def _make(user_id, username, ttl_sec=3600):
        return create_access_token(user_id, username, TEST_SECRET, ttl_sec)

    return _make


@pytest.fixture()
async def db():
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": ["imposter.models"]})
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()
