import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from .. import config
from ..config import WriteStrategy
from ..exceptions import UnsupportedFormatError
from .backends import PiexifBackend, set_file_times
from .reader import TimestampReader


class WriteOutcome(str, Enum):
    EMBEDDED = "embedded"
    FILESYSTEM = "filesystem"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"


class MetadataWriter:
    """
    Turns a target timestamp into a change of a file's persisted metadata.

    Holds no per-file state. The strategy is looked up from the extension
    (config.EXT_TO_STRATEGY):
      - EMBEDDED:   the configured backend rewrites the EXIF date tags.
      - FILESYSTEM: formats without writable EXIF support only get their
                    access/modification times set.
    """

    def __init__(self, backend=None, reader: Optional[TimestampReader] = None):
        self.backend = backend if backend is not None else PiexifBackend()
        self.reader = reader if reader is not None else TimestampReader()

    def is_supported(self, filename) -> bool:
        return Path(filename).suffix.lower() in config.SUPPORTED_EXTS

    def strategy_for(self, path: Path) -> WriteStrategy:
        ext = Path(path).suffix.lower()
        strategy = config.EXT_TO_STRATEGY.get(ext)
        if strategy is None:
            raise UnsupportedFormatError(f"Unsupported file format: {ext or '(no extension)'}")
        return strategy

    def read_original_timestamp(self, path: Path) -> datetime:
        return self.reader.read_original_timestamp(Path(path))

    def update_metadata(self, path: Path, target: datetime, dry_run: bool = False) -> WriteOutcome:
        """
        Persists `target` as the file's capture time.

        A dry run goes through the same strategy decision (so rejected or
        skipped files are reported identically) but never touches the file.

        Raises:
            UnsupportedFormatError: no strategy exists for the extension.
            MetadataWriteError: the write itself failed.
        """
        path = Path(path)
        strategy = self.strategy_for(path)
        stamp = target.strftime(config.DISPLAY_FORMAT)

        if strategy == WriteStrategy.EMBEDDED and not self.backend.available:
            # Backend warns once per run on its own
            if dry_run:
                logging.info(f"[DRY RUN] Would skip {path.name}: {self.backend.name} unavailable")
            else:
                self.backend.write(path, target)
            return WriteOutcome.SKIPPED

        if dry_run:
            logging.info(f"[DRY RUN] Would set {strategy.value} timestamp of {path.name} to {stamp}")
            return WriteOutcome.DRY_RUN

        if strategy == WriteStrategy.EMBEDDED:
            logging.debug(f"Rewriting EXIF of {path.name} via {self.backend.name} -> {stamp}")
            if not self.backend.write(path, target):
                return WriteOutcome.SKIPPED
            return WriteOutcome.EMBEDDED

        logging.debug(f"Setting file times of {path.name} -> {stamp}")
        set_file_times(path, target)
        return WriteOutcome.FILESYSTEM
