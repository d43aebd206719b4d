"""Command implementations for streamunpack CLI."""

from .extract import extract_command, formats_command
from .config import (
    config_get_command,
    config_list_command,
    config_set_command
)

__all__ = [
    'extract_command',
    'formats_command',
    'config_get_command',
    'config_list_command',
    'config_set_command'
]
