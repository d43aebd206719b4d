"""Streaming extraction of zip archives.

``zipfile`` needs to seek to the central directory at the end of the
archive, which is impossible while the archive is still being downloaded.
Instead the local file headers are read in stream order and each entry is
written as soon as its data arrives. File modes only live in the central
directory, so executable bits are patched in a second pass once the
entries have been drained.
"""
import bz2
import logging
import os
import struct
import zlib
from dataclasses import dataclass
from pathlib import PurePath
from typing import BinaryIO, Optional

from .. import constants
from ..utils.exceptions import ArchiveIOError, ChecksumMismatchError, MalformedArchiveError
from ..utils.file_utils import make_executable, remove_existing, write_buffer_size
from . import platform
from .compression import DECOMPRESSION_ERRORS, ZlibDecompressor, ZstdFrameDecompressor
from .dirs import DirectorySet, prepare_target
from .sanitize import enclosed_name

logger = logging.getLogger(__name__)

LOCAL_FILE_HEADER = b"PK\x03\x04"
CENTRAL_DIRECTORY_HEADER = b"PK\x01\x02"
END_OF_CENTRAL_DIRECTORY = b"PK\x05\x06"
ZIP64_END_OF_CENTRAL_DIRECTORY = b"PK\x06\x06"
DATA_DESCRIPTOR = b"PK\x07\x08"

# Local file header after the signature: version needed, flags, method,
# mtime, mdate, crc32, compressed size, uncompressed size, name length,
# extra length
LOCAL_HEADER = struct.Struct("<HHHHHIIIHH")
# Central directory header after the signature: version made by, version
# needed, flags, method, mtime, mdate, crc32, compressed size, uncompressed
# size, name length, extra length, comment length, disk, internal
# attributes, external attributes, local header offset
CENTRAL_HEADER = struct.Struct("<HHHHHHIIIHHHHHII")

FLAG_ENCRYPTED = 0x0001
FLAG_DATA_DESCRIPTOR = 0x0008
FLAG_UTF8 = 0x0800

ZIP64_EXTRA = 0x0001
UNICODE_PATH_EXTRA = 0x7075
ZIP64_LIMIT = 0xFFFFFFFF

HOST_UNIX = 3

ZIP_STORED = 0
ZIP_DEFLATED = 8
ZIP_BZIP2 = 12
ZIP_ZSTANDARD = 93


DECOMPRESSORS = {
    ZIP_DEFLATED: lambda: ZlibDecompressor(-zlib.MAX_WBITS),
    ZIP_BZIP2: bz2.BZ2Decompressor,
    ZIP_ZSTANDARD: ZstdFrameDecompressor,
}


@dataclass
class LocalEntry:
    """An entry as described by its local file header."""
    name: str
    flags: int
    method: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    zip64: bool = False

    @property
    def is_dir(self) -> bool:
        return self.name.endswith("/")

    @property
    def has_data_descriptor(self) -> bool:
        return bool(self.flags & FLAG_DATA_DESCRIPTOR)


@dataclass
class CentralEntry:
    """The parts of a central directory header needed to restore permissions."""
    name: str
    unix_mode: Optional[int]

    @property
    def is_dir(self) -> bool:
        return self.name.endswith("/")


class ForwardReader:
    """Buffered reader over a forward-only stream, with push-back."""

    def __init__(self, stream: BinaryIO, chunk_size: int = constants.DEFAULT_BUF_SIZE):
        self._stream = stream
        self._chunk_size = chunk_size
        self._buffer = b""
        self._offset = 0

    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes; an empty result means end of stream."""
        if self._offset >= len(self._buffer):
            self._buffer = self._stream.read(self._chunk_size)
            self._offset = 0
            if not self._buffer:
                return b""
        data = self._buffer[self._offset:self._offset + size]
        self._offset += len(data)
        return data

    def read_exact(self, size: int) -> bytes:
        parts = []
        remaining = size
        while remaining:
            data = self.read(remaining)
            if not data:
                raise MalformedArchiveError("Unexpected end of zip stream")
            parts.append(data)
            remaining -= len(data)
        return b"".join(parts)

    def skip(self, size: int) -> None:
        while size:
            data = self.read(size)
            if not data:
                raise MalformedArchiveError("Unexpected end of zip stream")
            size -= len(data)

    def unread(self, data: bytes) -> None:
        self._buffer = data + self._buffer[self._offset:]
        self._offset = 0


class EntryReader:
    """Decompressed data of one entry, read straight from the stream.

    Each read decodes at most ``size`` bytes (a zstd block for method 93),
    so a tiny entry cannot balloon in memory. Keeps a running CRC32 of
    everything returned. Once the data is exhausted the data descriptor (if
    any) is consumed and ``expected_crc`` holds the authoritative declared
    checksum.
    """

    def __init__(self, source: ForwardReader, entry: LocalEntry):
        self._source = source
        self._entry = entry
        self.crc = 0
        self.expected_crc = entry.crc32
        self._consumed = 0
        self._done = False

        if entry.method == ZIP_STORED:
            self._decompressor = None
        elif entry.method in DECOMPRESSORS:
            self._decompressor = DECOMPRESSORS[entry.method]()
        else:
            raise MalformedArchiveError(
                f"Unsupported compression method {entry.method} for {entry.name}"
            )

        # Compressed entries find their own end; stored entries have to rely
        # on the header even when a data descriptor follows.
        if entry.has_data_descriptor and self._decompressor is not None:
            self._remaining = None
        else:
            self._remaining = entry.compressed_size

    def read(self, size: int = constants.DEFAULT_BUF_SIZE) -> bytes:
        while not self._done:
            if self._decompressor is None:
                data = self._read_raw(size)
                if not data:
                    self._finish()
                    break
            else:
                if self._decompressor.eof:
                    self._finish()
                    break
                raw = b""
                if self._decompressor.needs_input:
                    raw = self._read_raw(constants.DEFAULT_BUF_SIZE)
                    if not raw:
                        raise MalformedArchiveError(f"Compressed data for {self._entry.name} ended unexpectedly")
                try:
                    data = self._decompressor.decompress(raw, size)
                except DECOMPRESSION_ERRORS as e:
                    raise MalformedArchiveError(f"Failed to decompress {self._entry.name}: {e}") from e
                if not data:
                    continue
            self.crc = zlib.crc32(data, self.crc)
            return data
        return b""

    def skip(self) -> None:
        """Advance the stream past this entry without looking at its contents."""
        if self._remaining is not None:
            self._source.skip(self._remaining)
            self._consumed += self._remaining
            self._remaining = 0
            self._finish()
            return
        while self.read():
            pass

    def _read_raw(self, size: int) -> bytes:
        if self._remaining is None:
            data = self._source.read(size)
        elif self._remaining == 0:
            return b""
        else:
            data = self._source.read(min(size, self._remaining))
            if not data:
                raise MalformedArchiveError(f"Unexpected end of zip stream in {self._entry.name}")
            self._remaining -= len(data)
        self._consumed += len(data)
        return data

    def _finish(self) -> None:
        if self._decompressor is not None and self._decompressor.eof:
            unused = self._decompressor.unused_data
            if self._remaining is None:
                # The tail belongs to whatever follows the entry
                self._source.unread(unused)
                self._consumed -= len(unused)
            elif self._remaining:
                self._source.skip(self._remaining)
                self._consumed += self._remaining
                self._remaining = 0
        self._done = True

        if self._entry.has_data_descriptor:
            crc, compressed_size = self._read_data_descriptor()
            self.expected_crc = crc
            if self._decompressor is None and compressed_size != self._consumed:
                raise MalformedArchiveError(
                    f"Cannot stream stored entry {self._entry.name}: its size is only known after its data"
                )

    def _read_data_descriptor(self):
        crc = self._source.read_exact(4)
        if crc == DATA_DESCRIPTOR:
            crc = self._source.read_exact(4)
        if self._entry.zip64:
            compressed_size, _ = struct.unpack("<QQ", self._source.read_exact(16))
        else:
            compressed_size, _ = struct.unpack("<II", self._source.read_exact(8))
        return struct.unpack("<I", crc)[0], compressed_size


def _extra_fields(extra: bytes):
    """Yield (tag, data) for each record of an extra field."""
    offset = 0
    while offset + 4 <= len(extra):
        tag, size = struct.unpack_from("<HH", extra, offset)
        offset += 4
        yield tag, extra[offset:offset + size]
        offset += size

def _decode_utf8(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedArchiveError(f"Entry name {raw!r} is not valid UTF-8") from e

def _decode_name(raw: bytes, flags: int, extra: bytes) -> str:
    for tag, data in _extra_fields(extra):
        # Version 1, CRC32 of the header name, UTF-8 name. A CRC that does not
        # match means the name was changed by a tool unaware of the field.
        if tag == UNICODE_PATH_EXTRA and len(data) > 5 and data[0] == 1:
            if struct.unpack_from("<I", data, 1)[0] == zlib.crc32(raw):
                return _decode_utf8(data[5:])
    if flags & FLAG_UTF8 or raw.isascii():
        return _decode_utf8(raw)
    return raw.decode("cp437")

def _read_local_header(source: ForwardReader) -> LocalEntry:
    (_, flags, method, _, _, crc, compressed_size, uncompressed_size,
     name_length, extra_length) = LOCAL_HEADER.unpack(source.read_exact(LOCAL_HEADER.size))
    raw_name = source.read_exact(name_length)
    extra = source.read_exact(extra_length)
    name = _decode_name(raw_name, flags, extra)

    if flags & FLAG_ENCRYPTED:
        raise MalformedArchiveError(f"Encrypted entries are not supported: {name}")

    zip64 = False
    for tag, data in _extra_fields(extra):
        if tag == ZIP64_EXTRA:
            zip64 = True
            values = list(struct.unpack_from(f"<{len(data) // 8}Q", data))
            if uncompressed_size == ZIP64_LIMIT and values:
                uncompressed_size = values.pop(0)
            if compressed_size == ZIP64_LIMIT and values:
                compressed_size = values.pop(0)

    return LocalEntry(name, flags, method, crc, compressed_size, uncompressed_size, zip64)

def _read_central_header(source: ForwardReader) -> CentralEntry:
    (made_by, _, flags, _, _, _, _, _, _, name_length, extra_length, comment_length,
     _, _, external_attr, _) = CENTRAL_HEADER.unpack(source.read_exact(CENTRAL_HEADER.size))
    raw_name = source.read_exact(name_length)
    extra = source.read_exact(extra_length)
    source.skip(comment_length)
    name = _decode_name(raw_name, flags, extra)

    unix_mode = external_attr >> 16 if made_by >> 8 == HOST_UNIX else None
    return CentralEntry(name, unix_mode)


def _extract_entry(source: ForwardReader, entry: LocalEntry, root: str, directories: DirectorySet) -> None:
    data = EntryReader(source, entry)

    relpath = enclosed_name(entry.name)
    if relpath is None or (not relpath.parts and not entry.is_dir):
        logger.warning("Skipping unsafe file name: %s", entry.name)
        data.skip()
        return

    path = os.path.join(root, *relpath.parts)
    if entry.is_dir:
        directories.ensure(path)
        data.skip()
        return

    directories.ensure(os.path.dirname(path))
    remove_existing(path)

    # Sizes in a header followed by a data descriptor are placeholders
    declared_size = None if entry.has_data_descriptor else entry.uncompressed_size
    try:
        # The mode is unknown until the central directory has been read
        with open(path, "wb", buffering=write_buffer_size(declared_size)) as f:
            for chunk in iter(data.read, b""):
                f.write(chunk)
    except OSError as e:
        raise ArchiveIOError(f"Failed to write {path}: {e}", path) from e
    logger.debug("Extracted %s", relpath)

    _check_crc(relpath, data.crc, data.expected_crc)

def _check_crc(relpath: PurePath, computed: int, expected: int) -> None:
    if computed == expected:
        return
    error = ChecksumMismatchError(relpath, computed, expected)
    # Entries written with a data descriptor sometimes carry a zero CRC that
    # a single forward pass cannot resolve, so zero means "unknown". An entry
    # crafted with a zero CRC therefore skips verification entirely.
    if expected == 0:
        logger.warning("presumed missing CRC: %s", error)
        return
    raise error

def _apply_permissions(source: ForwardReader, root: str) -> None:
    """Set executable bits from the central directory; the first header's signature is consumed."""
    signature = CENTRAL_DIRECTORY_HEADER
    while signature == CENTRAL_DIRECTORY_HEADER:
        entry = _read_central_header(source)
        signature = source.read_exact(4)

        if entry.is_dir or entry.unix_mode is None:
            continue
        # Only the executable bit is preserved, everything else uses OS defaults
        if not entry.unix_mode & constants.EXECUTABLE_BITS:
            continue
        relpath = enclosed_name(entry.name)
        if relpath is None or not relpath.parts:
            continue
        make_executable(os.path.join(root, *relpath.parts))


def unzip(reader: BinaryIO, target) -> None:
    """Unpack a zip archive into the target directory, without requiring seek.

    Useful for unpacking archives while they are being downloaded. Entries
    with unsafe names are skipped; everything else is written in stream
    order and the executable bits are restored at the end on Unix.

    Args:
        reader: Forward-only byte stream with a ``read(size)`` method
        target: Directory to extract into; created if missing

    Raises:
        ChecksumMismatchError: If an entry fails its CRC32 check
        MalformedArchiveError: If the zip framing or compressed data is invalid
        ArchiveIOError: If writing to the target fails
        UnsafeEntryError: If an entry would be written through an external link
    """
    root = prepare_target(target)
    source = ForwardReader(reader)
    directories = DirectorySet(root)

    signature = source.read_exact(4)
    while signature == LOCAL_FILE_HEADER:
        entry = _read_local_header(source)
        _extract_entry(source, entry, root, directories)
        signature = source.read_exact(4)

    if signature not in (CENTRAL_DIRECTORY_HEADER, END_OF_CENTRAL_DIRECTORY, ZIP64_END_OF_CENTRAL_DIRECTORY):
        raise MalformedArchiveError(f"Unexpected zip record signature {signature!r}")

    if signature == CENTRAL_DIRECTORY_HEADER and platform.supports_unix_permissions():
        _apply_permissions(source, root)
