"""Platform-specific functionality."""
import platform

def is_windows() -> bool:
    """Check if running on Windows."""
    return platform.system() == "Windows"

def supports_symlinks() -> bool:
    """Check whether extracted archives may materialize symlinks.

    Windows needs elevated privileges (or developer mode) to create symlinks,
    so links found in archives are skipped there.
    """
    return not is_windows()

def supports_unix_permissions() -> bool:
    """Check whether Unix mode bits (and so the executable bit) can be applied."""
    return not is_windows()
