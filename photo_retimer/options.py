"""
Per-run options and their validation.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Set

from . import config
from .exceptions import ConfigurationError


class Mode(str, Enum):
    FIXED = "fixed"
    FILENAME = "filename"
    SEQUENTIAL = "sequential"


@dataclass
class RunOptions:
    folder: Path
    date: Optional[str] = None          # YYYY-MM-DD
    time: Optional[str] = None          # HH:MM:SS
    auto: bool = False                  # parse target from filename
    sequential: bool = False
    start_time: Optional[str] = None    # HH:MM:SS, sequential only
    filename_format: str = config.DEFAULT_FILENAME_FORMAT
    dry_run: bool = False
    backend: str = config.DEFAULT_BACKEND
    max_workers: int = 1
    exiftool_path: Optional[str] = None
    report_csv: Optional[Path] = None
    skip_dirs: Set[Path] = field(default_factory=set)

    @property
    def mode(self) -> Mode:
        if self.sequential:
            return Mode.SEQUENTIAL
        if self.auto:
            return Mode.FILENAME
        return Mode.FIXED

    def validate(self):
        """Raises ConfigurationError describing the first problem found."""
        folder = Path(self.folder)
        if not folder.exists():
            raise ConfigurationError(f"Folder does not exist: {folder}")
        if not folder.is_dir():
            raise ConfigurationError(f"Not a folder: {folder}")

        mode_count = sum([
            self.auto,
            self.sequential,
            bool(self.date) and not self.auto and not self.sequential,
        ])
        if mode_count != 1:
            raise ConfigurationError(
                "Exactly one mode must be specified: --auto, --sequential, or a fixed --date/--time"
            )

        if self.sequential:
            if not self.date:
                raise ConfigurationError("Sequential mode requires --date")
            if not self.start_time:
                raise ConfigurationError("Sequential mode requires --start-time")
            _check_format(self.date, config.DATE_FORMAT, "date", "YYYY-MM-DD")
            _check_format(self.start_time, config.TIME_FORMAT, "start-time", "HH:MM:SS")
        elif not self.auto:
            _check_format(self.date, config.DATE_FORMAT, "date", "YYYY-MM-DD")
            if self.time:
                _check_format(self.time, config.TIME_FORMAT, "time", "HH:MM:SS")

        if self.backend not in config.BACKENDS:
            raise ConfigurationError(
                f"Unknown backend '{self.backend}', expected one of {', '.join(config.BACKENDS)}"
            )
        if self.max_workers < 1:
            raise ConfigurationError("--workers must be at least 1")

    def target_datetime(self) -> datetime:
        """Fixed-mode target. Midnight when no time was given."""
        if self.mode != Mode.FIXED:
            raise ConfigurationError("A single target time only exists in fixed mode")
        if self.time:
            return datetime.strptime(f"{self.date} {self.time}", config.DISPLAY_FORMAT)
        return datetime.strptime(self.date, config.DATE_FORMAT)

    def sequential_start(self) -> datetime:
        if self.mode != Mode.SEQUENTIAL:
            raise ConfigurationError("Not in sequential mode")
        return datetime.strptime(f"{self.date} {self.start_time}", config.DISPLAY_FORMAT)


def _check_format(value: Optional[str], fmt: str, name: str, human: str):
    try:
        datetime.strptime(value or "", fmt)
    except ValueError:
        raise ConfigurationError(f"Invalid {name} format, use {human}") from None
