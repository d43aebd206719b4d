"""streamunpack - Extract zip and tar archives while they stream in."""
from .core.config import init_paths
from .core.stream import ArchiveFormat, extract_stream
from .core.untar import untar, untar_bz2, untar_gz, untar_xz, untar_zst
from .core.unzip import unzip

# Initialize global paths
init_paths()

__version__ = "0.1.0"
__all__ = [
    'ArchiveFormat', 'extract_stream',
    'unzip', 'untar', 'untar_gz', 'untar_bz2', 'untar_zst', 'untar_xz',
]
