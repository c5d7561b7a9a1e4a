"""
Pytest Configuration for redmodel Tests.

Provides an in-memory hash store on a controllable clock, settings and
store isolation between tests, and a Redis availability check for
integration tests.
"""

import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file for environment variables (integration tests)
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from redmodel.core.config import get_settings  # noqa: E402
from redmodel.storage import InMemoryHashStore, reset_store, set_store  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (needs a running Redis)"
    )


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True, scope="function")
def isolate_settings(monkeypatch, request):
    """
    Clear cached settings and the process-wide store around every test.

    Unit tests also drop REDMODEL_* variables so a developer's environment
    cannot leak in; integration tests keep them to find their Redis.
    """
    markers = [m.name for m in request.node.iter_markers()]
    if "integration" not in markers:
        for var in ("REDMODEL_REDIS_URL", "REDIS_URL", "REDMODEL_DEFAULT_TTL",
                    "REDMODEL_KEY_PREFIX", "REDMODEL_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("REDMODEL_CONFIG_FILE", "")

    get_settings.cache_clear()
    reset_store()
    yield
    get_settings.cache_clear()
    reset_store()


@pytest.fixture
def clock():
    """Controllable clock for TTL tests."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory store installed as the process-wide store."""
    memory_store = InMemoryHashStore(clock=clock)
    set_store(memory_store)
    yield memory_store
    memory_store.flush()


# ============================================================================
# Infrastructure Availability Checks
# ============================================================================

@pytest.fixture(scope="session")
def redis_available():
    """Check if the configured Redis answers PING."""
    import redis

    from redmodel.core.config import Settings

    try:
        client = redis.Redis.from_url(Settings().redis_url, socket_connect_timeout=1)
        client.ping()
        client.close()
        return True
    except redis.exceptions.RedisError:
        return False
