import csv
import logging
from pathlib import Path
from typing import Iterable

from . import config
from .models import FileResult, ProcessingStats


def print_summary(stats: ProcessingStats):
    """The end-of-run counts are the primary success signal of a run."""
    print("\n=== Processing Summary ===")
    print(f"Total files found: {stats.total_files}")
    print(f"Successfully processed: {stats.processed_files}")
    print(f"Skipped: {stats.skipped_files}")
    print(f"Errors: {stats.error_files}")


def write_results_csv(results: Iterable[FileResult], output_csv: Path):
    """
    Writes one row per file seen during the run.
    """
    output_csv = Path(output_csv)
    output_csv.parent.mkdir(parents=True, exist_ok=True)

    headers = ["Path", "Status", "Original", "Target", "Strategy", "Detail"]
    count = 0
    with output_csv.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for r in results:
            writer.writerow([
                str(r.path),
                r.status.value,
                r.original_timestamp.strftime(config.DISPLAY_FORMAT) if r.original_timestamp else "",
                r.target_timestamp.strftime(config.DISPLAY_FORMAT) if r.target_timestamp else "",
                r.strategy or "",
                r.detail or "",
            ])
            count += 1

    logging.info(f"Wrote {count} rows to {output_csv}")
