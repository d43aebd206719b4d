"""Core functionality for streamunpack."""

from . import config
from . import platform
from . import download
from .compression import Compression, open_decompressed
from .stream import ArchiveFormat, extract_stream
from .untar import untar, untar_bz2, untar_gz, untar_xz, untar_zst
from .unzip import unzip

__all__ = [
    'config', 'platform', 'download',
    'Compression', 'open_decompressed',
    'ArchiveFormat', 'extract_stream',
    'unzip', 'untar', 'untar_gz', 'untar_bz2', 'untar_zst', 'untar_xz',
]
