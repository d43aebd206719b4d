"""File utility functions for streamunpack"""
import os
from typing import Optional

from .. import constants
from .exceptions import ArchiveIOError

def write_buffer_size(declared_size: Optional[int]) -> int:
    """Pick a write buffer size for an entry.

    Args:
        declared_size: Uncompressed size from the archive, or None if it cannot be trusted

    Returns:
        int: The declared size capped at MAX_WRITE_BUF_SIZE, else DEFAULT_BUF_SIZE
    """
    # buffering=1 means line buffering, which open() warns about in binary mode
    if not declared_size or declared_size < 2:
        return constants.DEFAULT_BUF_SIZE
    return min(declared_size, constants.MAX_WRITE_BUF_SIZE)

def make_executable(path: str) -> None:
    """Add the owner, group and other execute bits to a file.

    Existing bits are never removed, and nothing is written when all three
    execute bits are already present.

    Raises:
        ArchiveIOError: If the file cannot be inspected or changed
    """
    try:
        mode = os.stat(path).st_mode
        if mode & constants.EXECUTABLE_BITS != constants.EXECUTABLE_BITS:
            os.chmod(path, mode | constants.EXECUTABLE_BITS)
    except OSError as e:
        raise ArchiveIOError(f"Failed to set permissions on {path}: {e}", path) from e

def remove_existing(path: str) -> None:
    """Remove a file or link at ``path`` so a new entry is never written through it.

    Raises:
        ArchiveIOError: If an existing entry cannot be removed
    """
    try:
        if os.path.islink(path) or os.path.isfile(path):
            os.unlink(path)
    except OSError as e:
        raise ArchiveIOError(f"Failed to replace {path}: {e}", path) from e
