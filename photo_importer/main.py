import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from . import config
from .core import MediaImporter
from .exceptions import InvalidRootError, UnreadableDirectoryError
from .models import ImportConfig

BANNER = """Photo Importer: a command line tool for importing photos, videos and music.

Sample usage:

\tphoto-importer --from /media/usb/DCIM --to ~/Photos --dry-run
"""


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        # Never defaulted into the destination: a dry run must not write there
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="photo-importer",
        description="Copies or moves media into a tree organised by capture date, or artist/album for music.",
    )

    p.add_argument("--from", dest="src", type=Path, default=None, help="Media source directory")
    p.add_argument("--to", dest="dest", type=Path, default=None, help="Media destination directory")

    p.add_argument("--move", action="store_true", help="Delete original file after copying (rename file)")
    p.add_argument("--dry-run", action="store_true", help="Print what would be done without actually doing it")
    p.add_argument("--max-procs", type=int, default=os.cpu_count() or 1,
                   help="The maximum number of files processed at the same time (default: CPU count)")

    p.add_argument("--exiftool", action="store_true",
                   help="Use exiftool instead of the built-in readers (slower, requires exiftool)")
    p.add_argument("--try-exiftool", action="store_true",
                   help="Fall back to exiftool if the built-in readers fail (requires exiftool)")
    p.add_argument("--metadata-timeout", type=float, default=config.EXIFTOOL_TIMEOUT,
                   help="Seconds to wait for exiftool on a single file")

    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    return p


def config_from_args(args: argparse.Namespace) -> ImportConfig:
    if args.max_procs < 1:
        raise ValueError("--max-procs must be at least 1")

    # --try-exiftool keeps the built-in readers first, as before
    if args.exiftool and not args.try_exiftool:
        backend = config.BACKEND_EXIFTOOL
    else:
        backend = config.BACKEND_NATIVE

    return ImportConfig(
        src_root=args.src.expanduser().resolve(),
        dest_root=args.dest.expanduser().resolve(),
        move=args.move,
        dry_run=args.dry_run,
        max_procs=args.max_procs,
        backend=backend,
        exiftool_fallback=args.try_exiftool,
        metadata_timeout=args.metadata_timeout,
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.src is None or args.dest is None:
        print(BANNER)
        parser.print_help()
        return 0

    setup_logging(args.verbose, args.log_file)

    try:
        cfg = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    logging.info("=== Photo Importer Started ===")
    logging.info(f"Source: {cfg.src_root}")
    logging.info(f"Dest:   {cfg.dest_root}")

    importer = MediaImporter(cfg)

    try:
        stats = importer.run()
    except (InvalidRootError, UnreadableDirectoryError) as e:
        logging.error(str(e))
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except Exception:
        logging.exception("Fatal error during import.")
        return 1

    print(stats.format_summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
