"""Extract command implementation."""
from pathlib import Path

from ...core import config, download
from ...core.stream import ArchiveFormat
from ...utils.archive import extract_archive

def extract_command(args) -> None:
    """Extract a local archive or a URL into a directory.

    Args:
        args: Command line arguments containing source, target and format
    """
    target = Path(args.target)
    if download.is_url(args.source):
        global_config = config.load_global_config()
        print(f"Extracting {args.source} into {target}...")
        size = download.download_and_extract(
            args.source,
            target,
            args.format,
            timeout=int(global_config["download_timeout"]),
            max_size=int(global_config["max_download_size"]) or None,
            progress=True
        )
        print(f"Extracted {download.format_bytes(size)} archive into {target}")
    else:
        extract_archive(Path(args.source), target, args.format)
        print(f"Extracted {args.source} into {target}")

def formats_command(args) -> None:
    """List the accepted archive formats.

    Args:
        args: Command line arguments (unused)
    """
    print("Supported archive formats:")
    for fmt in ArchiveFormat:
        print(f"  {fmt.value}")
