"""Forward-only decompression adapters for tar-family archives."""
import bz2
import enum
import io
import lzma
import struct
import zlib
from typing import BinaryIO, Callable

import zstandard

from .. import constants
from ..utils.exceptions import MalformedArchiveError

DECOMPRESSION_ERRORS = (zlib.error, OSError, EOFError, lzma.LZMAError, zstandard.ZstdError)

ZSTD_MAGIC = 0xFD2FB528
ZSTD_BLOCK_RLE = 1
ZSTD_DICT_ID_SIZES = (0, 1, 2, 4)
ZSTD_CONTENT_SIZE_SIZES = (0, 2, 4, 8)

# Frame parsing states of ZstdFrameDecompressor
_MAGIC, _DESCRIPTOR, _HEADER, _BLOCK_HEADER, _BLOCK, _TAIL = range(6)


class Compression(enum.Enum):
    """Compression applied around a tar stream."""
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    ZSTD = "zstd"
    XZ = "xz"


class ZlibDecompressor:
    """``zlib.decompressobj`` behind the ``needs_input`` protocol of bz2 and lzma."""

    def __init__(self, wbits: int):
        self._decompressor = zlib.decompressobj(wbits)
        self.needs_input = True

    @property
    def eof(self) -> bool:
        return self._decompressor.eof

    @property
    def unused_data(self) -> bytes:
        return self._decompressor.unused_data

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        limit = max(max_length, 0)
        output = self._decompressor.decompress(self._decompressor.unconsumed_tail + data, limit)
        # A full output buffer may still leave decoded bytes inside zlib
        self.needs_input = not self._decompressor.unconsumed_tail and (not limit or len(output) < limit)
        return output


class ZstdFrameDecompressor:
    """A single zstd frame, behind the ``needs_input`` protocol of bz2 and lzma.

    zstandard's ``decompressobj()`` has no ``max_length``, so the input is
    handed over no further than the end of the next block instead. A block
    never decodes to more than 128 KiB, which bounds every call. The frame
    and block headers are read just far enough to find those block ends.
    """

    def __init__(self):
        dctx = zstandard.ZstdDecompressor(max_window_size=constants.ZSTD_MAX_WINDOW_SIZE)
        self._decompressor = dctx.decompressobj()
        self._input = b""
        self._state = _MAGIC
        self._need = 4
        self._field = b""
        self._last_block = False

    @property
    def eof(self) -> bool:
        return self._decompressor.eof

    @property
    def unused_data(self) -> bytes:
        if not self.eof:
            return b""
        return self._decompressor.unused_data + self._input

    @property
    def needs_input(self) -> bool:
        return not self._input

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        data = self._input + data
        size = self._next_block_end(data)
        self._input = data[size:]
        return self._decompressor.decompress(data[:size])

    def _next_block_end(self, data: bytes) -> int:
        """Return the length of the prefix of ``data`` that completes at most one block."""
        pos = 0
        while pos < len(data) or (self._need == 0 and self._state == _BLOCK):
            if self._state == _TAIL:
                return len(data)
            take = min(self._need, len(data) - pos)
            if self._state != _BLOCK:
                self._field += data[pos:pos + take]
            pos += take
            self._need -= take
            if self._need:
                break
            block_end = self._state == _BLOCK
            self._advance()
            if block_end:
                break
        return pos

    def _advance(self) -> None:
        field, self._field = self._field, b""
        if self._state == _MAGIC:
            # Skippable frames decode to nothing and zstandard rejects garbage
            if struct.unpack("<I", field)[0] == ZSTD_MAGIC:
                self._state, self._need = _DESCRIPTOR, 1
            else:
                self._state = _TAIL
        elif self._state == _DESCRIPTOR:
            descriptor = field[0]
            single_segment = bool(descriptor & 0x20)
            content_size = ZSTD_CONTENT_SIZE_SIZES[descriptor >> 6] or int(single_segment)
            window = 0 if single_segment else 1
            self._state = _HEADER
            self._need = window + ZSTD_DICT_ID_SIZES[descriptor & 0x03] + content_size
        elif self._state == _HEADER:
            self._state, self._need = _BLOCK_HEADER, 3
        elif self._state == _BLOCK_HEADER:
            header = int.from_bytes(field, "little")
            self._last_block = bool(header & 1)
            self._state = _BLOCK
            self._need = 1 if (header >> 1) & 0x03 == ZSTD_BLOCK_RLE else header >> 3
        elif self._last_block:
            self._state = _TAIL
        else:
            self._state, self._need = _BLOCK_HEADER, 3


def _gzip_decompressor():
    return ZlibDecompressor(zlib.MAX_WBITS | 16)

# FORMAT_AUTO also accepts legacy .lzma streams
DECOMPRESSORS = {
    Compression.GZIP: _gzip_decompressor,
    Compression.BZIP2: bz2.BZ2Decompressor,
    Compression.ZSTD: ZstdFrameDecompressor,
    Compression.XZ: lzma.LZMADecompressor,
}


class DecompressingReader(io.RawIOBase):
    """Readable stream of the decompressed bytes of a forward-only source.

    The source is only ever read in order. Concatenated members (multi-member
    gzip, multi-stream bzip2/xz, multiple zstd frames) are decoded back to
    back, and NUL padding after a complete member is ignored. No call decodes
    more than ``chunk_size`` bytes ahead of the reader.
    """

    def __init__(self, source: BinaryIO, factory: Callable, chunk_size: int = constants.DEFAULT_BUF_SIZE):
        self._source = source
        self._factory = factory
        self._chunk_size = chunk_size
        self._decompressor = None
        self._input = b""
        self._pending = b""
        self._offset = 0
        self._finished = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while self._offset >= len(self._pending):
            if self._finished:
                return 0
            self._fill()

        size = min(len(buffer), len(self._pending) - self._offset)
        buffer[:size] = self._pending[self._offset:self._offset + size]
        self._offset += size
        return size

    def _fill(self) -> None:
        decompressor = self._decompressor
        if decompressor is not None and not decompressor.eof and not decompressor.needs_input:
            data = b""
        else:
            data = self._input or self._source.read(self._chunk_size)
            self._input = b""
            if not data:
                if decompressor is None or not decompressor.eof:
                    raise MalformedArchiveError("Compressed stream ended unexpectedly")
                self._finished = True
                return

            if decompressor is None or decompressor.eof:
                if not data.strip(b"\0"):
                    return
                decompressor = self._decompressor = self._factory()

        try:
            self._pending = decompressor.decompress(data, self._chunk_size)
        except DECOMPRESSION_ERRORS as e:
            raise MalformedArchiveError(f"Failed to decompress archive stream: {e}") from e
        self._offset = 0
        if decompressor.eof:
            self._input = decompressor.unused_data


def open_decompressed(source: BinaryIO, compression: Compression) -> BinaryIO:
    """Wrap ``source`` so that reading yields decompressed bytes.

    Args:
        source: Forward-only byte stream with a ``read(size)`` method
        compression: Compression applied to the stream

    Returns:
        BinaryIO: ``source`` itself for Compression.NONE, else a DecompressingReader
    """
    if compression is Compression.NONE:
        return source
    return DecompressingReader(source, DECOMPRESSORS[compression])
