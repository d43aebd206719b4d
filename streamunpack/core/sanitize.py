"""Archive entry name sanitization."""
from pathlib import PurePath
from typing import Optional


def enclosed_name(name: str) -> Optional[PurePath]:
    """Turn a raw archive entry name into a path confined to the extraction root.

    Parent-directory components are allowed as long as they never climb above
    the root, so ``a/../b`` is accepted (and resolved to ``b``) while
    ``../evil`` and ``a/../../evil`` are not.

    Args:
        name: Entry name as decoded from the archive metadata

    Returns:
        Optional[PurePath]: Relative path with ``..`` resolved, or None if the
        name is unsafe. An all-no-op name such as ``./`` yields ``PurePath()``.
    """
    if '\0' in name:
        return None

    path = PurePath(name)
    # Root directories, drives and UNC shares all show up as an anchor
    if path.anchor:
        return None

    parts = []
    for part in path.parts:
        if part == '..':
            if not parts:
                return None
            parts.pop()
        elif part != '.':
            parts.append(part)
    return PurePath(*parts)
