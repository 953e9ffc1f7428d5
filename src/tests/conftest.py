# tests/conftest.py
from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from reelhost.library import MetadataIndex
from reelhost.streaming import ActiveFileRegistry, StreamingResponder
from reelhost.streaming.server import create_app
from reelhost.utils.logging import setup_logger

# Setup logger for tests to ensure custom log levels are available
setup_logger("DEBUG")

SMALL_FILE_SIZE = 1000
LARGE_FILE_SIZE = 50_000_000


def pattern_bytes(size: int) -> bytes:
    return bytes(i % 256 for i in range(size))


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def small_file(tmp_path: Path) -> Path:
    """A 1000-byte file whose byte at offset i is i % 256."""
    path = tmp_path / "small.mp4"
    path.write_bytes(pattern_bytes(SMALL_FILE_SIZE))
    return path


@pytest.fixture
def large_file(tmp_path: Path) -> Path:
    """A sparse 50 MB file with a marker at the start and at 12,000,000."""
    path = tmp_path / "large.mp4"
    with open(path, "wb") as file:
        file.truncate(LARGE_FILE_SIZE)
        file.write(b"START")
        file.seek(11_999_995)
        file.write(b"LAST5")
    return path


@pytest.fixture
def registry() -> ActiveFileRegistry:
    return ActiveFileRegistry()


@pytest.fixture
def responder() -> StreamingResponder:
    return StreamingResponder()


@pytest.fixture
def client(registry: ActiveFileRegistry, responder: StreamingResponder) -> Iterator[TestClient]:
    with TestClient(create_app(registry, responder)) as test_client:
        yield test_client


@pytest.fixture
def index(data_dir: Path) -> MetadataIndex:
    return MetadataIndex(data_dir / "torrents.json")
