"""Route a forward-only archive stream to the matching extractor."""
import enum
import logging
from typing import BinaryIO, Optional, Union

from ..utils.exceptions import UnsupportedArchiveFormatError
from .compression import Compression
from .untar import untar
from .unzip import unzip

logger = logging.getLogger(__name__)


class ArchiveFormat(enum.Enum):
    """Archive formats, named by their file extension."""
    ZIP = "zip"
    TAR = "tar"
    TAR_GZ = "tar.gz"
    TGZ = "tgz"
    TAR_BZ2 = "tar.bz2"
    TBZ = "tbz"
    TAR_ZST = "tar.zst"
    TAR_XZ = "tar.xz"
    TXZ = "txz"
    TAR_LZ = "tar.lz"
    TLZ = "tlz"
    TAR_LZMA = "tar.lzma"

    @property
    def is_zip(self) -> bool:
        return self is ArchiveFormat.ZIP

    @property
    def compression(self) -> Optional[Compression]:
        """Compression around the tar stream, or None for zip."""
        return _COMPRESSION.get(self)

    @classmethod
    def parse(cls, value: Union["ArchiveFormat", str]) -> "ArchiveFormat":
        """Accept a member or its extension, with or without a leading dot."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().lstrip("."))
        except ValueError:
            raise UnsupportedArchiveFormatError(f"Unsupported archive format: {value}") from None

    @classmethod
    def from_filename(cls, filename: str) -> "ArchiveFormat":
        """Classify an archive by its file name (e.g. ``pkg-1.0.tar.gz``).

        Raises:
            UnsupportedArchiveFormatError: If no known extension matches
        """
        lowered = filename.lower()
        for fmt in cls:
            if lowered.endswith("." + fmt.value):
                return fmt
        raise UnsupportedArchiveFormatError(f"Unsupported archive format: {filename}")


_COMPRESSION = {
    ArchiveFormat.TAR: Compression.NONE,
    ArchiveFormat.TAR_GZ: Compression.GZIP,
    ArchiveFormat.TGZ: Compression.GZIP,
    ArchiveFormat.TAR_BZ2: Compression.BZIP2,
    ArchiveFormat.TBZ: Compression.BZIP2,
    ArchiveFormat.TAR_ZST: Compression.ZSTD,
    ArchiveFormat.TAR_XZ: Compression.XZ,
    ArchiveFormat.TXZ: Compression.XZ,
    ArchiveFormat.TAR_LZ: Compression.XZ,
    ArchiveFormat.TLZ: Compression.XZ,
    ArchiveFormat.TAR_LZMA: Compression.XZ,
}


def extract_stream(reader: BinaryIO, fmt: Union[ArchiveFormat, str], target) -> None:
    """Unpack an archive of any supported format into ``target``, without requiring seek.

    Args:
        reader: Forward-only byte stream with a ``read(size)`` method
        fmt: Archive format, as an ArchiveFormat or its extension string
        target: Directory to extract into; created if missing

    Raises:
        UnsupportedArchiveFormatError: If ``fmt`` is not a known format
        ExtractError: Whatever the selected extractor raises
    """
    fmt = ArchiveFormat.parse(fmt)
    logger.debug("Extracting %s archive into %s", fmt.value, target)
    if fmt.is_zip:
        unzip(reader, target)
    else:
        untar(reader, target, fmt.compression)
