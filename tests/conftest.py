"""Shared pytest fixtures."""

import pytest

from fleetview.clients.resolver import CoordinateResolver
from fleetview.clients.catalog import CatalogSource
from fleetview.clients.verber import ResourceVerber
from fleetview.utils.retry import Backoff
from tests.fakes import FakeCluster, core_catalog

# Retries without waiting between attempts.
NO_WAIT = Backoff(steps=5, duration=0.0, factor=1.0, jitter=0.0)


@pytest.fixture
def cluster() -> FakeCluster:
    """Create an in-memory cluster serving a small catalog."""
    return core_catalog(FakeCluster())


@pytest.fixture
def resolver(cluster: FakeCluster) -> CoordinateResolver:
    """Create a resolver reading the fake cluster's catalog."""
    return CoordinateResolver(CatalogSource(cluster).fetch)  # type: ignore[arg-type]


@pytest.fixture
def verber(cluster: FakeCluster, resolver: CoordinateResolver) -> ResourceVerber:
    """Create a verber against the fake cluster that retries without sleeping."""
    return ResourceVerber(cluster, resolver, backoff=NO_WAIT)  # type: ignore[arg-type]
