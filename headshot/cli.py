"""Command line entry point.

Usage:
  headshot process a.jpg b.png -o headshots.zip --size 1000
  headshot extract headshots.zip -d out/ --png-only
  headshot serve
  headshot download-models
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import settings
from .core.archive import ArchiveError, read_archive

logger = logging.getLogger(__name__)


def _cmd_process(args: argparse.Namespace) -> int:
    from .core.processing import process_batch, resolve_target_size

    files = [(path.name, path.read_bytes()) for path in args.images]
    result = process_batch(files, resolve_target_size(args.size))

    for error in result['errors']:
        print(f"SKIPPED: {error}", file=sys.stderr)
    if result['processed'] == 0:
        raise ValueError("No images processed")

    args.output.write_bytes(result['archive'])
    print(f"Saved {result['processed']} headshot(s) to {args.output}")
    return 0


def _unique_basename(name: str, taken: set) -> str:
    if name not in taken:
        return name
    path = Path(name)
    counter = 2
    while f"{path.stem}-{counter}{path.suffix}" in taken:
        counter += 1
    return f"{path.stem}-{counter}{path.suffix}"


def _cmd_extract(args: argparse.Namespace) -> int:
    entries = read_archive(args.archive.read_bytes())
    args.directory.mkdir(parents=True, exist_ok=True)

    written = 0
    taken = set()
    for entry in entries:
        if args.png_only and not entry.name.lower().endswith('.png'):
            continue
        # Never write outside the target directory
        name = _unique_basename(Path(entry.name).name, taken)
        if name != Path(entry.name).name:
            logger.warning(f"Duplicate file name {entry.name!r}, writing it as {name!r}")
        taken.add(name)
        (args.directory / name).write_bytes(entry.data)
        written += 1

    print(f"Extracted {written} file(s) to {args.directory}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    from .main import serve
    serve()
    return 0


def _cmd_download_models(args: argparse.Namespace) -> int:
    from .download_models import download_models
    return 0 if download_models() else 1


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="headshot", description="Batch headshot framing.")
    sub = p.add_subparsers(dest="command", required=True)

    proc = sub.add_parser("process", help="Frame images and write a ZIP archive")
    proc.add_argument("images", nargs="+", type=Path, help="Input images (.jpg/.jpeg/.png/.webp)")
    proc.add_argument("--output", "-o", type=Path, default=Path("headshots.zip"), help="Output archive path")
    proc.add_argument("--size", default=settings.DEFAULT_SIZE, help="Output size in pixels (500 or 1000)")
    proc.set_defaults(func=_cmd_process)

    ext = sub.add_parser("extract", help="Unpack a stored ZIP archive")
    ext.add_argument("archive", type=Path, help="Archive to read")
    ext.add_argument("--directory", "-d", type=Path, default=Path("."), help="Destination directory")
    ext.add_argument("--png-only", action="store_true", help="Only extract .png entries")
    ext.set_defaults(func=_cmd_extract)

    srv = sub.add_parser("serve", help="Run the HTTP API")
    srv.set_defaults(func=_cmd_serve)

    dl = sub.add_parser("download-models", help="Download face detector weights")
    dl.set_defaults(func=_cmd_download_models)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(level=settings.get_log_level())

    try:
        return args.func(args)
    except (ArchiveError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
