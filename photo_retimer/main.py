import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import config
from .core import ImageProcessor
from .exceptions import ConfigurationError, EmptyInputError, TimestampRangeError
from .options import RunOptions
from .reporting import print_summary, write_results_csv


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Photo Retimer: rewrite capture timestamps of a folder of images",
        epilog=(
            "Modes:\n"
            "  --auto                                   take date/time from each filename\n"
            "  --sequential --date D --start-time T     earliest photo gets D T, gaps preserved\n"
            "  --date D [--time T]                      same date/time for every image\n\n"
            "Changes are not reversible; copy the folder first if you may need the old times.\n"
            "Running --sequential twice on the same folder treats the corrected times as original."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    p.add_argument("folder", type=Path, help="Folder containing the images (searched recursively)")

    p.add_argument("--date", help="Date in YYYY-MM-DD format")
    p.add_argument("--time", help="Time in HH:MM:SS format (fixed mode, optional)")
    p.add_argument("--auto", action="store_true", help="Extract date/time from each filename")
    p.add_argument("--sequential", action="store_true",
                   help="Shift all photos to --date/--start-time, preserving time differences")
    p.add_argument("--start-time", help="Time assigned to the earliest photo (HH:MM:SS)")
    p.add_argument("--format", dest="filename_format", default=config.DEFAULT_FILENAME_FORMAT,
                   help="strptime format for filename parsing (default: %(default)s)")

    p.add_argument("--backend", choices=config.BACKENDS, default=config.DEFAULT_BACKEND,
                   help="How embedded EXIF dates are written (default: %(default)s)")
    p.add_argument("--exiftool", dest="exiftool_path", default=None,
                   help="Path to the exiftool executable (exiftool backend)")
    p.add_argument("--workers", type=int, default=1, help="Parallel workers for reading and writing")
    p.add_argument("--skip-dirs-file", type=Path, default=None,
                   help="File listing folders to leave untouched, one per line")

    p.add_argument("--dry-run", action="store_true", help="Show what would change without modifying files")
    p.add_argument("--report-csv", type=Path, default=None, help="Write a per-file result CSV")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def load_skip_dirs(skip_file: Optional[Path]) -> set[Path]:
    """One folder per line; blank lines and # comments are ignored."""
    if not skip_file or not skip_file.exists():
        return set()

    skips = set()
    with skip_file.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                skips.add(Path(line).expanduser().resolve())
    return skips


def options_from_args(args) -> RunOptions:
    return RunOptions(
        folder=args.folder.resolve(),
        date=args.date,
        time=args.time,
        auto=args.auto,
        sequential=args.sequential,
        start_time=args.start_time,
        filename_format=args.filename_format,
        dry_run=args.dry_run,
        backend=args.backend,
        max_workers=args.workers,
        exiftool_path=args.exiftool_path,
        report_csv=args.report_csv,
        skip_dirs=load_skip_dirs(args.skip_dirs_file),
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    options = options_from_args(args)
    try:
        options.validate()
    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        return 1

    logging.info("=== Photo Retimer Started ===")
    processor = ImageProcessor(options)

    try:
        stats = processor.process_folder()
    except (EmptyInputError, TimestampRangeError) as e:
        logging.error(f"Processing failed: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1

    print_summary(stats)
    if options.report_csv:
        write_results_csv(processor.results, options.report_csv)

    return 1 if stats.error_files else 0


if __name__ == "__main__":
    sys.exit(main())
