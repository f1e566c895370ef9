"""Root pytest configuration for all tests."""

import pytest

from notemark.config.models import WorkerConfig
from notemark.storage.memory_store import InMemoryStore


@pytest.fixture
def memory_store():
    """Empty in-memory output store."""
    return InMemoryStore()


@pytest.fixture
def fast_config(tmp_path):
    """Worker config with zero retry delays, writing under tmp_path."""
    return WorkerConfig(
        output_dir=str(tmp_path / "out"),
        base_delay_seconds=0.0,
        max_delay_seconds=0.0,
        processing_timeout_seconds=5.0,
    )
