"""Tests for archive format dispatch"""
import bz2
import gzip
import io
import lzma
import tarfile
import zipfile
import pytest
import zstandard
from unittest.mock import patch

from streamunpack.core.compression import Compression
from streamunpack.core.stream import ArchiveFormat, extract_stream
from streamunpack.utils.exceptions import InvalidInputError, UnsupportedArchiveFormatError

FILES = {"top.txt": b"top level", "nested/inner.txt": b"inner " * 2000}

def tar_bytes():
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name, data in FILES.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()

def zip_bytes():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in FILES.items():
            zf.writestr(name, data)
    return buffer.getvalue()

ENCODERS = {
    Compression.NONE: lambda data: data,
    Compression.GZIP: gzip.compress,
    Compression.BZIP2: bz2.compress,
    Compression.ZSTD: lambda data: zstandard.ZstdCompressor().compress(data),
    Compression.XZ: lzma.compress,
}

def encode(fmt):
    if fmt.is_zip:
        return zip_bytes()
    if fmt is ArchiveFormat.TAR_LZMA:
        return lzma.compress(tar_bytes(), format=lzma.FORMAT_ALONE)
    return ENCODERS[fmt.compression](tar_bytes())

@pytest.mark.parametrize("fmt", list(ArchiveFormat), ids=lambda fmt: fmt.value)
def test_extract_stream_every_format(fmt, forward_only, extract_dir):
    """Every format extracts the same tree from a forward-only stream"""
    source = forward_only(encode(fmt))
    extract_stream(source, fmt, extract_dir)
    for name, data in FILES.items():
        assert (extract_dir / name).read_bytes() == data

def test_extract_stream_accepts_extension(forward_only, extract_dir):
    """The format may be given as an extension string"""
    extract_stream(forward_only(zip_bytes()), ".ZIP", extract_dir)
    assert (extract_dir / "top.txt").read_bytes() == b"top level"

def test_extract_stream_unsupported(forward_only, extract_dir):
    """Unknown formats fail before anything is read or created"""
    source = forward_only(b"whatever")
    with pytest.raises(UnsupportedArchiveFormatError, match="Unsupported archive format: rar"):
        extract_stream(source, "rar", extract_dir)
    assert source.bytes_read == 0
    assert not extract_dir.exists()

def test_extract_stream_dispatch(forward_only, extract_dir):
    """Zip goes to unzip, tar variants go to untar with their compression"""
    with patch('streamunpack.core.stream.unzip') as mock_unzip, \
         patch('streamunpack.core.stream.untar') as mock_untar:
        source = forward_only(b"")
        extract_stream(source, ArchiveFormat.ZIP, extract_dir)
        extract_stream(source, ArchiveFormat.TXZ, extract_dir)

    mock_unzip.assert_called_once_with(source, extract_dir)
    mock_untar.assert_called_once_with(source, extract_dir, Compression.XZ)

@pytest.mark.parametrize("filename, expected", [
    ("tool.zip", ArchiveFormat.ZIP),
    ("tool-1.0.tar", ArchiveFormat.TAR),
    ("tool-1.0.tar.gz", ArchiveFormat.TAR_GZ),
    ("TOOL.TGZ", ArchiveFormat.TGZ),
    ("tool.tar.bz2", ArchiveFormat.TAR_BZ2),
    ("tool.tbz", ArchiveFormat.TBZ),
    ("tool.tar.zst", ArchiveFormat.TAR_ZST),
    ("tool.tar.xz", ArchiveFormat.TAR_XZ),
    ("tool.txz", ArchiveFormat.TXZ),
    ("tool.tar.lz", ArchiveFormat.TAR_LZ),
    ("tool.tlz", ArchiveFormat.TLZ),
    ("tool.tar.lzma", ArchiveFormat.TAR_LZMA),
])
def test_from_filename(filename, expected):
    """File names are classified by their extension"""
    assert ArchiveFormat.from_filename(filename) is expected

@pytest.mark.parametrize("filename", ["tool.rar", "tool.gz", "tool", "zip"])
def test_from_filename_unsupported(filename):
    """Bare compressed files and unknown extensions are rejected"""
    with pytest.raises(UnsupportedArchiveFormatError):
        ArchiveFormat.from_filename(filename)

def test_parse():
    """Members, extensions and dotted extensions all parse"""
    assert ArchiveFormat.parse(ArchiveFormat.TAR_GZ) is ArchiveFormat.TAR_GZ
    assert ArchiveFormat.parse("tar.gz") is ArchiveFormat.TAR_GZ
    assert ArchiveFormat.parse(".tgz") is ArchiveFormat.TGZ
    assert ArchiveFormat.parse("Tar.Zst") is ArchiveFormat.TAR_ZST

def test_parse_error_is_invalid_input():
    """An unknown format is a caller error"""
    with pytest.raises(InvalidInputError):
        ArchiveFormat.parse("7z")
    with pytest.raises(ValueError):
        ArchiveFormat.parse("7z")

def test_compression_mapping():
    """Zip has no outer compression, every tar flavour has one"""
    assert ArchiveFormat.ZIP.compression is None
    assert ArchiveFormat.ZIP.is_zip
    assert ArchiveFormat.TAR.compression is Compression.NONE
    assert ArchiveFormat.TBZ.compression is Compression.BZIP2
    assert ArchiveFormat.TLZ.compression is Compression.XZ
    assert all(fmt.compression is not None for fmt in ArchiveFormat if not fmt.is_zip)
