"""Command-line interface for streamunpack."""
import argparse
import logging
import sys
from typing import List, Optional

from .. import __version__
from ..core import config
from .commands import config as config_commands
from .commands import extract as extract_commands

def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(prog="streamunpack", description="Extract zip and tar archives while they stream in")
    parser.add_argument('-V', '--version', action='version', version=f'streamunpack {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    subparsers = parser.add_subparsers(dest='command', required=False)

    # Extract command
    extract_parser = subparsers.add_parser('extract', help='Extract an archive file or URL')
    extract_parser.add_argument('source', help='Archive path or http(s) URL')
    extract_parser.add_argument('target', help='Directory to extract into')
    extract_parser.add_argument('--format', help='Archive format (default: guessed from the file name)')
    extract_parser.set_defaults(func=extract_commands.extract_command)

    formats_parser = subparsers.add_parser('formats', help='List supported archive formats')
    formats_parser.set_defaults(func=extract_commands.formats_command)

    # Config commands
    config_parser = subparsers.add_parser('config', help='Global configuration commands')
    config_subparsers = config_parser.add_subparsers(dest='config_command')

    config_set = config_subparsers.add_parser('set', help='Set config values')
    config_set.add_argument('pairs', nargs='+', help='KEY=VALUE pairs')
    config_set.set_defaults(func=config_commands.config_set_command)

    config_get = config_subparsers.add_parser('get', help='Get a config value')
    config_get.add_argument('key', help='Config key')
    config_get.set_defaults(func=config_commands.config_get_command)

    config_list = config_subparsers.add_parser('list', help='List config values')
    config_list.set_defaults(func=config_commands.config_list_command)

    return parser

def configure_logging(verbose: bool = False) -> None:
    """Send library warnings to stderr at the configured level."""
    if verbose:
        level = "DEBUG"
    else:
        try:
            level = config.load_global_config().get("log_level", "WARNING")
        except (RuntimeError, OSError):
            level = "WARNING"
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, if None uses sys.argv[1:]

    Returns:
        int: Exit code
    """
    if args is None:
        args = sys.argv[1:]

    parser = create_parser()
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    if not hasattr(parsed_args, 'func'):
        parser.print_help()
        return 1

    try:
        parsed_args.func(parsed_args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

if __name__ == '__main__':
    sys.exit(main())
