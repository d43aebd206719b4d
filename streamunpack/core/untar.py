"""Streaming extraction of tar archives."""
import logging
import os
import shutil
import tarfile
from typing import BinaryIO

from .. import constants
from ..utils.exceptions import ArchiveIOError, MalformedArchiveError, UnsafeEntryError
from ..utils.file_utils import make_executable, remove_existing, write_buffer_size
from . import platform
from .compression import Compression, open_decompressed
from .dirs import DirectorySet, is_within, prepare_target
from .sanitize import enclosed_name

logger = logging.getLogger(__name__)


def _write_file(tar: tarfile.TarFile, member: tarfile.TarInfo, path: str) -> None:
    source = tar.extractfile(member)
    try:
        with open(path, "wb", buffering=write_buffer_size(member.size)) as f:
            if source is not None:
                shutil.copyfileobj(source, f, constants.DEFAULT_BUF_SIZE)
    except OSError as e:
        raise ArchiveIOError(f"Failed to write {path}: {e}", path) from e

def _write_hard_link(root: str, member: tarfile.TarInfo, path: str) -> None:
    relpath = enclosed_name(member.linkname)
    if relpath is None or not relpath.parts:
        raise UnsafeEntryError(f"Hard link {member.name} points outside of the target: {member.linkname}")
    link_source = os.path.join(root, *relpath.parts)
    if not is_within(root, os.path.realpath(link_source)):
        raise UnsafeEntryError(f"Hard link {member.name} resolves outside of the target: {member.linkname}")
    try:
        try:
            os.link(link_source, path)
        except OSError:
            # Some filesystems refuse hard links; the linked file is already on disk
            shutil.copyfile(link_source, path)
    except OSError as e:
        raise ArchiveIOError(f"Failed to link {path} to {link_source}: {e}", path) from e

def _write_symlink(member: tarfile.TarInfo, path: str) -> None:
    try:
        os.symlink(member.linkname, path)
    except OSError as e:
        raise ArchiveIOError(f"Failed to create symlink {path}: {e}", path) from e


def untar_in(tar: tarfile.TarFile, target) -> None:
    """Unpack every member of a stream-mode tar archive into ``target``.

    Like ``TarFile.extractall``, but never applies stored mtimes, owners or
    permission bits other than the executable bit, never writes through a
    link that leaves the target, and skips unsafe names instead of failing.
    """
    root = prepare_target(target)
    directories = DirectorySet(root)
    allow_symlinks = platform.supports_symlinks()
    unix_permissions = platform.supports_unix_permissions()

    for member in tar:
        if member.issym() and not allow_symlinks:
            logger.warning("Skipping symlink in tar archive: %s", member.name)
            continue

        relpath = enclosed_name(member.name)
        if relpath is None or (not relpath.parts and not member.isdir()):
            logger.warning("Skipping unsafe file name: %s", member.name)
            continue
        path = os.path.join(root, *relpath.parts)

        if member.isdir():
            directories.ensure(path)
            continue
        if not (member.isreg() or member.islnk() or member.issym()):
            logger.debug("Skipping special file in tar archive: %s", member.name)
            continue

        directories.ensure(os.path.dirname(path))
        remove_existing(path)

        if member.issym():
            _write_symlink(member, path)
        elif member.islnk():
            _write_hard_link(root, member, path)
        else:
            _write_file(tar, member, path)
        logger.debug("Extracted %s", relpath)

        if unix_permissions and not member.issym() and member.mode & constants.EXECUTABLE_BITS:
            make_executable(path)


def untar(reader: BinaryIO, target, compression: Compression = Compression.NONE) -> None:
    """Unpack a (possibly compressed) tar archive into the target directory, without requiring seek.

    Useful for unpacking archives while they are being downloaded.

    Args:
        reader: Forward-only byte stream with a ``read(size)`` method
        target: Directory to extract into; created if missing
        compression: Compression wrapped around the tar stream

    Raises:
        MalformedArchiveError: If a header or the compressed stream is corrupt
        ArchiveIOError: If writing to the target fails
        UnsafeEntryError: If an entry would be written through an external link
    """
    stream = open_decompressed(reader, compression)
    try:
        with tarfile.open(fileobj=stream, mode="r|", bufsize=constants.DEFAULT_BUF_SIZE) as tar:
            untar_in(tar, target)
    except tarfile.TarError as e:
        raise MalformedArchiveError(f"Invalid tar archive: {e}") from e

def untar_gz(reader: BinaryIO, target) -> None:
    """Unpack a ``.tar.gz`` archive into the target directory, without requiring seek."""
    untar(reader, target, Compression.GZIP)

def untar_bz2(reader: BinaryIO, target) -> None:
    """Unpack a ``.tar.bz2`` archive into the target directory, without requiring seek."""
    untar(reader, target, Compression.BZIP2)

def untar_zst(reader: BinaryIO, target) -> None:
    """Unpack a ``.tar.zst`` archive into the target directory, without requiring seek."""
    untar(reader, target, Compression.ZSTD)

def untar_xz(reader: BinaryIO, target) -> None:
    """Unpack a ``.tar.xz`` or ``.tar.lzma`` archive into the target directory, without requiring seek."""
    untar(reader, target, Compression.XZ)
