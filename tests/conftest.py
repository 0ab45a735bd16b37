"""
Pytest configuration and shared fixtures for the pipeline tests.

Every fixture here uses the in-memory backends, so no Redis or PostgreSQL
server is needed.
"""

import os

import pytest
from hypothesis import settings, Verbosity

from fibpipe.core import (
    Gateway,
    InMemoryDurableLog,
    InMemoryResultCache,
    LocalMessageBus,
    WorkerPool,
)


# ============================================================================
# Hypothesis Configuration
# ============================================================================

settings.register_profile("default", max_examples=100, deadline=None)
settings.register_profile("ci", max_examples=500, deadline=None)
settings.register_profile("dev", max_examples=20, verbosity=Verbosity.verbose)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


# ============================================================================
# Backends
# ============================================================================

@pytest.fixture
def cache():
    return InMemoryResultCache()


@pytest.fixture
def log():
    return InMemoryDurableLog()


@pytest.fixture
async def bus():
    bus = LocalMessageBus()
    await bus.connect()
    yield bus
    await bus.disconnect()


@pytest.fixture
def gateway(cache, log, bus):
    return Gateway(cache=cache, log=log, bus=bus)


@pytest.fixture
async def pool(cache, bus):
    pool = WorkerPool(cache=cache, bus=bus, num_workers=2)
    await pool.start()
    yield pool
    await pool.stop()
