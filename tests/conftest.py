"""Shared fixtures for assistant_metrics tests."""

import os

# The snapshot job must not start inside TestClient
os.environ.setdefault("METRICS_SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from assistant_metrics.core.rate_limiter import limiter
from assistant_metrics.features.metrics.cache import MetricsCache
from assistant_metrics.features.metrics.calculator import MetricsCalculator
from assistant_metrics.features.metrics.service import MetricsService, get_metrics_service
from assistant_metrics.main import app

from tests.helpers import NOW, FakeClock, FakeFirestore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def firestore():
    return FakeFirestore()


@pytest.fixture
def calculator(firestore, clock):
    return MetricsCalculator(firestore=firestore, cache=MetricsCache(ttl_seconds=300, clock=clock))


@pytest.fixture
def metrics_service(firestore, calculator):
    return MetricsService(firestore=firestore, calculator=calculator, now=lambda: NOW)


@pytest.fixture
def client(metrics_service):
    limiter.reset()
    app.dependency_overrides[get_metrics_service] = lambda: metrics_service
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.reset()
