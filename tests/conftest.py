"""Pytest configuration and shared fixtures."""
import gzip
import io
import tempfile
import zipfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def workdir(temp_dir, monkeypatch):
    """Temporary directory that is also the working directory."""
    monkeypatch.chdir(temp_dir)
    return temp_dir


@pytest.fixture
def make_gzip(temp_dir):
    """Write gzip-compressed content at a path relative to temp_dir."""
    def _make(relative_path: str, content) -> Path:
        if isinstance(content, str):
            content = content.encode('utf-8')
        path = temp_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(gzip.compress(content))
        return path
    return _make


@pytest.fixture
def make_zip(temp_dir):
    """Write a zip archive of {member name: content} at a path relative to temp_dir."""
    def _make(relative_path: str, members: dict) -> Path:
        path = temp_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, 'w') as zf:
            for name, content in members.items():
                if isinstance(content, str):
                    content = content.encode('utf-8')
                zf.writestr(name, content)
        return path
    return _make


def stream(text: str) -> io.BytesIO:
    """UTF-8 byte stream over ``text`` for feeding decoders directly."""
    return io.BytesIO(text.encode('utf-8'))


@pytest.fixture
def xml_input():
    return stream
