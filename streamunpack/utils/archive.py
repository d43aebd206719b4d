"""Archive handling utilities."""
from pathlib import Path
from typing import Optional, Union

from ..core.stream import ArchiveFormat, extract_stream
from .exceptions import ArchiveIOError

def extract_archive(
    archive_path: Path,
    extract_dir: Path,
    fmt: Optional[Union[ArchiveFormat, str]] = None
) -> None:
    """Extract an archive file that is already on disk.

    The file is read front to back exactly as a download would be, so this
    behaves the same as extracting the archive while it streams in.

    Args:
        archive_path: Path to the archive file
        extract_dir: Directory to extract to
        fmt: Archive format; taken from the file name if None

    Raises:
        UnsupportedArchiveFormatError: If archive format is not supported
        ArchiveIOError: If the archive cannot be opened
        ExtractError: If the archive cannot be extracted
    """
    archive_path = Path(archive_path)
    fmt = ArchiveFormat.parse(fmt) if fmt is not None else ArchiveFormat.from_filename(archive_path.name)

    try:
        f = open(archive_path, 'rb')
    except OSError as e:
        raise ArchiveIOError(f"Failed to open archive {archive_path}: {e}", archive_path) from e
    with f:
        extract_stream(f, fmt, extract_dir)
