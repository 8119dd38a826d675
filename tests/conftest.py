"""Shared fixtures: fake clock, in-memory key-value tier, file-backed document store, proxy settings."""
import pytest
import pytest_asyncio

from studio.config import Settings
from studio.db import create_kv_engine
from studio.storage import KeyValueStore, SqlKeyValueBackend, StorageGuard, create_document_store

START_MS = 1_700_000_000_000


class FakeClock:
    """ms epoch clock the tests move by hand."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv_backend(clock: FakeClock):
    engine = create_kv_engine("sqlite://")
    backend = SqlKeyValueBackend(engine, clock=clock)
    yield backend
    engine.dispose()


def make_store(backend: SqlKeyValueBackend, budget_bytes: int, clock: FakeClock) -> KeyValueStore:
    return KeyValueStore(backend, StorageGuard(backend, budget_bytes, clock=clock))


@pytest.fixture
def kv_store(kv_backend: SqlKeyValueBackend, clock: FakeClock) -> KeyValueStore:
    return make_store(kv_backend, 1_000_000, clock)


@pytest_asyncio.fixture
async def document_store(tmp_path):
    store = await create_document_store(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    yield store
    await store.close()


@pytest.fixture
def proxy_settings() -> Settings:
    return Settings(
        _env_file=None,
        API_KEY="test-api-key",
        APP_ENV="test",
        REDIS_URL=None,
        VEO_POLL_INTERVAL_SECONDS=0,
        VEO_MAX_POLL_ATTEMPTS=5,
    )
