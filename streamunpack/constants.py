"""Global constants and default configurations for streamunpack."""

# Global paths will be initialized by core.config
STREAMUNPACK_HOME = None
STREAMUNPACK_CONFIG_FILE = None

# Read size for the source stream and fallback write buffer
DEFAULT_BUF_SIZE = 128 * 1024

# Upper bound for a per-file write buffer sized from the declared entry size
MAX_WRITE_BUF_SIZE = 1024 * 1024

# Owner, group and other execute bits
EXECUTABLE_BITS = 0o111

# zstd frames may ask for windows up to 2 GiB
ZSTD_MAX_WINDOW_SIZE = 2 ** 31

# Default configuration
DEFAULT_CONFIG = {
    "download_timeout": 60,
    "max_download_size": 0,  # 0 means unlimited
    "log_level": "WARNING",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
