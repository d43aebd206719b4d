"""Command-line interface module for streamunpack."""
from .cli import main
from . import commands

__all__ = ['main', 'commands']
