"""
Custom exceptions for the streamunpack project
"""
from pathlib import PurePath
from typing import Optional, Union


class StreamUnpackError(Exception):
    """Base exception for all streamunpack-specific errors"""
    pass

class ExtractError(StreamUnpackError):
    """Raised when an archive cannot be extracted; the target may be partially populated"""
    pass

class ChecksumMismatchError(ExtractError):
    """Raised when a zip entry's CRC32 does not match its declared value"""

    def __init__(self, path: PurePath, computed: int, expected: int):
        self.path = path
        self.computed = computed
        self.expected = expected
        super().__init__(
            f"Bad CRC (got {computed:08x}, expected {expected:08x}) for file: {path}"
        )

class MalformedArchiveError(ExtractError):
    """Raised for corrupt headers, metadata or compressed streams"""
    pass

class ArchiveIOError(ExtractError):
    """Raised when creating or writing a file or directory fails"""

    def __init__(self, message: str, path: Optional[Union[str, PurePath]] = None):
        self.path = path
        super().__init__(message)

class UnsafeEntryError(ExtractError):
    """Raised when an entry would be written outside the target directory"""
    pass

class InvalidInputError(StreamUnpackError, ValueError):
    """Raised when invalid input is provided"""
    pass

class UnsupportedArchiveFormatError(InvalidInputError):
    """Raised when an archive format is not recognised"""
    pass

class InvalidURLError(InvalidInputError):
    """Raised when an invalid URL is provided"""
    pass

class ConfigValidationError(InvalidInputError):
    """Raised when configuration validation fails"""
    pass

class DownloadError(StreamUnpackError):
    """Raised for download-related errors"""
    pass
