"""Pytest configuration and shared fixtures."""

import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("LOG_FORMAT", "readable")

from secretdrop.core.config import Settings  # noqa: E402
from secretdrop.core.telemetry import reset_metrics  # noqa: E402
from secretdrop.main import create_app  # noqa: E402
from secretdrop.services.key_generator import KeyGenerator  # noqa: E402
from secretdrop.services.secret_store import MemorySecretStore  # noqa: E402

TEST_MAX_PAYLOAD_BYTES = 1024


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _clean_metrics() -> Iterator[None]:
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemorySecretStore:
    """Small in-memory store on a fake clock: 1 KiB payloads, 1 h default TTL, 1 day max."""
    return MemorySecretStore(
        KeyGenerator(),
        num_shards=4,
        clock=clock,
        max_payload_bytes=TEST_MAX_PAYLOAD_BYTES,
        default_ttl_seconds=3600,
        max_ttl_seconds=86400,
    )


@pytest.fixture
def settings() -> Settings:
    """Settings matching the store fixture; background sweeper off."""
    return Settings(
        max_payload_bytes=TEST_MAX_PAYLOAD_BYTES,
        sweep_interval_seconds=0,
        log_level="DEBUG",
    )


@pytest.fixture
def client(settings: Settings, store: MemorySecretStore) -> Iterator[TestClient]:
    """FastAPI test client over the fake-clock store (lifespan runs)."""
    app = create_app(settings, store=store)
    with TestClient(app) as test_client:
        yield test_client
