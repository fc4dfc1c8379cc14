"""
Test configuration and shared fixtures.

Provides the fake GraphQL client, a controllable clock, and an engine wired
to in-memory state for unit tests.
"""

import pytest

from prtriage.cache import QueryCache
from prtriage.state import MemorySettingsBackend, PersistentStateStore
from prtriage.sync import SyncEngine
from tests.fixtures.fakes import FakeClock, FakeGraphQLClient, viewer_data


@pytest.fixture
def clock() -> FakeClock:
    """
    Why: TTL and snooze expiry must be tested without sleeping
    What: Provides an epoch clock that only moves when told to
    How: Returns a FakeClock starting at a fixed timestamp
    """
    return FakeClock()


@pytest.fixture
def backend() -> MemorySettingsBackend:
    return MemorySettingsBackend()


@pytest.fixture
def store(backend: MemorySettingsBackend, clock: FakeClock) -> PersistentStateStore:
    return PersistentStateStore(backend, clock=clock)


@pytest.fixture
def fake_client() -> FakeGraphQLClient:
    """
    Why: Engine behavior depends on remote responses, not on HTTP details
    What: Provides an authenticated fake client that knows the viewer login
    How: Registers a ViewerLogin response; tests add the rest by operation name
    """
    client = FakeGraphQLClient()
    client.respond("ViewerLogin", viewer_data("octocat"))
    return client


@pytest.fixture
def engine(
    fake_client: FakeGraphQLClient, store: PersistentStateStore, clock: FakeClock
) -> SyncEngine:
    return SyncEngine(fake_client, store, cache=QueryCache(ttl=300, clock=clock))  # type: ignore[arg-type]
