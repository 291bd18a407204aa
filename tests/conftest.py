"""Pytest configuration for etcd probe tests."""

import sys
from pathlib import Path

import pytest
from loguru import logger

# Add the src directory to the Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from etcd_probe.models import EndpointHealth  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Auto-mark unit tests."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks added during a test; they may point at captured streams."""
    yield
    logger.remove()


class FakeEtcdClient:
    """Stands in for EtcdClient; records calls instead of talking HTTP."""

    def __init__(self, config, api_prefix="/v3", latency=0.05, members=None, error=None, connect_error=None):
        self.config = config
        self.api_prefix = api_prefix
        self.latency = latency
        self.members = members if members is not None else [True]
        self.error = error
        self.connect_error = connect_error
        self.closed = False
        self.calls = []

    def __enter__(self):
        if self.connect_error:
            raise self.connect_error
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    def endpoint_health(self, key="health"):
        self.calls.append(("endpoint_health", key))
        if self.error:
            raise self.error
        return [
            EndpointHealth(endpoint=f"http://10.0.0.{i}:2379", healthy=healthy, took=0.01)
            for i, healthy in enumerate(self.members, start=1)
        ]

    def measure_latency(self, key="dummy", total=1):
        self.calls.append(("measure_latency", key, total))
        if self.error:
            raise self.error
        return self.latency


@pytest.fixture
def fake_client_factory():
    """Build a factory producing FakeEtcdClient instances with fixed behaviour."""
    def make(**behaviour):
        def factory(config, api_prefix="/v3"):
            client = FakeEtcdClient(config, api_prefix=api_prefix, **behaviour)
            factory.created.append(client)
            return client

        factory.created = []
        return factory

    return make
