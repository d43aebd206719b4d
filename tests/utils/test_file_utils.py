"""Tests for file utility functions"""
import os
import stat
import sys
import warnings
import pytest
from unittest.mock import patch

from streamunpack import constants
from streamunpack.utils.exceptions import ArchiveIOError
from streamunpack.utils.file_utils import make_executable, remove_existing, write_buffer_size

@pytest.mark.parametrize("declared, expected", [
    (None, constants.DEFAULT_BUF_SIZE),
    (0, constants.DEFAULT_BUF_SIZE),
    (-1, constants.DEFAULT_BUF_SIZE),
    (1, constants.DEFAULT_BUF_SIZE),
    (2, 2),
    (10, 10),
    (constants.MAX_WRITE_BUF_SIZE * 4, constants.MAX_WRITE_BUF_SIZE),
])
def test_write_buffer_size(declared, expected):
    """Test the write buffer follows the declared size within bounds"""
    assert write_buffer_size(declared) == expected

@pytest.mark.skipif(sys.platform == "win32", reason="requires Unix permissions")
def test_make_executable_adds_bits(tmp_path):
    """Test all three execute bits are added and others are kept"""
    path = tmp_path / "tool"
    path.write_text("#!/bin/sh\n")
    os.chmod(path, 0o640)

    make_executable(str(path))
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o751

def test_make_executable_noop(tmp_path):
    """Test nothing is written when the bits are already set"""
    path = tmp_path / "tool"
    path.write_text("")
    with patch('os.stat') as mock_stat, patch('os.chmod') as mock_chmod:
        mock_stat.return_value.st_mode = 0o100755
        make_executable(str(path))
    mock_chmod.assert_not_called()

def test_make_executable_missing(tmp_path):
    """Test failures surface as ArchiveIOError"""
    with pytest.raises(ArchiveIOError, match="Failed to set permissions") as excinfo:
        make_executable(str(tmp_path / "missing"))
    assert excinfo.value.path == str(tmp_path / "missing")

def test_remove_existing_file(tmp_path):
    """Test an existing file is removed"""
    path = tmp_path / "old.txt"
    path.write_text("old")
    remove_existing(str(path))
    assert not path.exists()

@pytest.mark.skipif(sys.platform == "win32", reason="requires symlink support")
def test_remove_existing_symlink(tmp_path):
    """Test a link is removed without touching its target"""
    target = tmp_path / "target.txt"
    target.write_text("keep")
    link = tmp_path / "link"
    link.symlink_to(target)

    remove_existing(str(link))
    assert not os.path.lexists(link)
    assert target.read_text() == "keep"

def test_remove_existing_ignores_missing_and_dirs(tmp_path):
    """Test missing paths and directories are left alone"""
    remove_existing(str(tmp_path / "missing"))
    (tmp_path / "dir").mkdir()
    remove_existing(str(tmp_path / "dir"))
    assert (tmp_path / "dir").is_dir()

def test_remove_existing_error(tmp_path):
    """Test unlink failures surface as ArchiveIOError"""
    path = tmp_path / "locked.txt"
    path.write_text("locked")
    with patch('os.unlink', side_effect=PermissionError("denied")):
        with pytest.raises(ArchiveIOError, match="Failed to replace"):
            remove_existing(str(path))

def test_write_buffer_size_one_byte_file(tmp_path):
    """Test a one byte file opens without a line buffering warning"""
    path = tmp_path / "one.bin"
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        with open(path, "wb", buffering=write_buffer_size(1)) as f:
            f.write(b"x")
    assert path.read_bytes() == b"x"
