"""Per-extraction memoization of created directories."""
import logging
import os

from ..utils.exceptions import ArchiveIOError, UnsafeEntryError

logger = logging.getLogger(__name__)


def is_within(root: str, path: str) -> bool:
    """Check whether a canonical path is root itself or lies below it."""
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


class DirectorySet:
    """Directories already created while extracting into one target.

    A directory is created (with its ancestors) and checked to resolve inside
    the root only the first time it is seen, so the filesystem work is bounded
    by the number of distinct directories rather than the number of entries.
    Instances are meant to live for exactly one extraction call.
    """

    def __init__(self, root: str):
        self.root = root
        self._seen = {root}

    def __contains__(self, path) -> bool:
        return os.fspath(path) in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def ensure(self, path) -> None:
        """Create ``path`` and its ancestors unless already done in this call.

        Raises:
            UnsafeEntryError: If the directory resolves outside the root, e.g.
                through a symlink extracted earlier
            ArchiveIOError: If the directory cannot be created
        """
        path = os.fspath(path)
        if path in self._seen:
            return

        # Missing components resolve lexically, so this catches linked ancestors
        if not is_within(self.root, os.path.realpath(path)):
            raise UnsafeEntryError(
                f"Refusing to extract through {path}: it resolves outside of {self.root}"
            )

        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(f"Failed to create directory {path}: {e}", path) from e

        logger.debug("Created directory %s", path)
        self._seen.add(path)


def prepare_target(target) -> str:
    """Create the extraction target if needed and return its canonical path.

    Raises:
        ArchiveIOError: If the target cannot be created or resolved
    """
    try:
        os.makedirs(target, exist_ok=True)
        return os.path.realpath(target)
    except OSError as e:
        raise ArchiveIOError(f"Failed to prepare target directory {target}: {e}", target) from e
