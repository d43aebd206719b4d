"""Test fixtures for streamunpack"""
import io
import os
import pytest
from unittest.mock import patch


class ForwardOnlyStream(io.RawIOBase):
    """Readable stream that refuses to seek and hands out small reads, like a socket."""

    def __init__(self, data: bytes, max_read: int = 7919):
        self._data = io.BytesIO(data)
        self._max_read = max_read
        self.bytes_read = 0

    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, buffer):
        chunk = self._data.read(min(len(buffer), self._max_read))
        buffer[:len(chunk)] = chunk
        self.bytes_read += len(chunk)
        return len(chunk)


@pytest.fixture
def forward_only():
    """Fixture wrapping bytes in a non-seekable stream"""
    return ForwardOnlyStream

@pytest.fixture
def created_directories():
    """Fixture listing the directories a wrapped os.makedirs mock created, relative to a target"""
    def created(mock_makedirs, target):
        root = os.path.realpath(target)
        return sorted(
            os.path.relpath(os.path.realpath(c.args[0]), root) for c in mock_makedirs.call_args_list
        )
    return created

@pytest.fixture
def extract_dir(tmp_path):
    """Fixture for an extraction target that does not exist yet"""
    return tmp_path / "target"

@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Keep every test away from the real ~/.config/streamunpack"""
    home = tmp_path / ".config" / "streamunpack"
    with patch('streamunpack.constants.STREAMUNPACK_HOME', home), \
         patch('streamunpack.constants.STREAMUNPACK_CONFIG_FILE', home / "config.yaml"):
        yield home

@pytest.fixture
def windows():
    """Fixture pretending to run on Windows"""
    with patch('platform.system', return_value='Windows'):
        yield
