"""
Shared pytest fixtures for key-value store tests.
"""

import os
import tempfile

import pytest

from kvs.engine.store import KvStore
from kvs.models.record import Record


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def store(temp_dir):
    """Provide an open KvStore rooted at a temporary directory."""
    with KvStore.open(temp_dir) as kv:
        yield kv


@pytest.fixture
def data_dir(temp_dir):
    """Provide the data directory a store rooted at temp_dir would use."""
    return os.path.join(temp_dir, KvStore.DATA_DIR_NAME)


@pytest.fixture
def segment_path(tmp_path):
    """Provide a path for a segment file."""
    return str(tmp_path / "00000000000000000001.log")


@pytest.fixture
def sample_records():
    """Provide a mixed sequence of SET and REMOVE records."""
    return [
        Record.set("key1", "value1"),
        Record.set("key2", "value2"),
        Record.remove("key1"),
        Record.set("key3", ""),
        Record.set("ключ", "значение ✓"),
    ]
