import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, TypeVar

from tqdm import tqdm

from . import config
from .exceptions import EmptyInputError, PhotoRetimerError
from .metadata.backends import build_backend
from .metadata.writer import MetadataWriter, WriteOutcome
from .models import FileResult, FileStatus, ProcessingStats
from .options import Mode, RunOptions
from .parsing.filename import FilenameDateParser
from .scanning.filesystem import iter_files
from .sequential.calculator import SequentialCalculator

T = TypeVar("T")


def _fmt(dt: Optional[datetime]) -> str:
    return dt.strftime(config.DISPLAY_FORMAT) if dt else "-"


class ImageProcessor:
    """
    Walks a folder and applies one timestamp policy to every supported image.

    Each file succeeds or fails on its own. Only an empty sequential set
    (nothing to anchor the base time to) ends the run early.
    """

    def __init__(self,
                 options: RunOptions,
                 writer: Optional[MetadataWriter] = None,
                 parser: Optional[FilenameDateParser] = None):
        self.options = options
        self.writer = writer or MetadataWriter(
            backend=build_backend(options.backend, options.exiftool_path)
        )
        self.parser = parser or FilenameDateParser(options.filename_format)
        self.stats = ProcessingStats()
        self.results: List[FileResult] = []

    def process_folder(self) -> ProcessingStats:
        """
        Runs the configured mode over options.folder.

        Raises:
            EmptyInputError: sequential mode found no supported images.
        """
        root = Path(self.options.folder)
        logging.info(f"Processing folder: {root}")
        if self.options.dry_run:
            logging.info("DRY RUN MODE - No files will be modified")

        if self.options.mode == Mode.SEQUENTIAL:
            self._process_sequential(root)
        else:
            self._process_direct(root)

        return self.stats

    # --- Fixed / Filename modes ---

    def _process_direct(self, root: Path):
        fixed_target = None
        if self.options.mode == Mode.FIXED:
            fixed_target = self.options.target_datetime()
            logging.info(f"Setting every image to {_fmt(fixed_target)}")
        else:
            logging.info(f"Extracting dates from filenames (primary format {self.parser.primary_format})")

        supported = self._classify(root)

        def handle(path: Path) -> FileResult:
            if fixed_target is not None:
                return self._apply(path, fixed_target)
            try:
                target = self.parser.parse(path.name)
            except PhotoRetimerError as e:
                logging.error(f"Could not parse date from filename {path.name}: {e}")
                return FileResult(path, FileStatus.ERROR, detail=str(e))
            logging.debug(f"Extracted date from filename {path.name}: {_fmt(target)}")
            return self._apply(path, target)

        for result in self._map(handle, supported, desc="Updating"):
            self._record(result)

    # --- Sequential mode ---

    def _process_sequential(self, root: Path):
        logging.info("Running in SEQUENTIAL mode - preserving time differences")
        calculator = SequentialCalculator(self.options.sequential_start())

        # Phase 1: collect every original timestamp
        supported = self._classify(root)
        originals = self._map(self._read_original, supported, desc="Reading")
        unreadable = set()
        for path, original in zip(supported, originals):
            if isinstance(original, FileResult):
                self._record(original)
                unreadable.add(path)
                continue
            calculator.add_photo(path, original)
            logging.debug(f"Collected timestamp for {path.name}: {_fmt(original)}")

        if calculator.get_photo_count() == 0:
            raise EmptyInputError(f"No supported image files found in {root}")

        # Phase 2: compute all new times before anything is written
        logging.info(f"Found {calculator.get_photo_count()} photos, calculating sequential times...")
        calculator.calculate_new_times()
        originals_by_path = {}
        for rec in calculator.records():
            originals_by_path.setdefault(rec.path, rec.original_timestamp)

        # Phase 3: walk again and apply; unreadable files were already counted
        to_apply = [
            p for p in iter_files(root, self.options.skip_dirs)
            if self.writer.is_supported(p.name) and p not in unreadable
        ]

        def handle(path: Path) -> FileResult:
            target = calculator.get_photo_new_time(path)
            if target is None:
                logging.error(f"No calculated time found for {path.name}")
                return FileResult(path, FileStatus.ERROR, detail="no calculated time")
            return self._apply(path, target, original=originals_by_path.get(path))

        for result in self._map(handle, to_apply, desc="Updating"):
            self._record(result)

    def _read_original(self, path: Path):
        """Returns the original timestamp, or a FileResult when the file is unreadable."""
        try:
            return self.writer.read_original_timestamp(path)
        except Exception as e:
            logging.error(f"Could not read any timestamp from {path}: {e}")
            return FileResult(path, FileStatus.ERROR, detail=str(e))

    # --- Shared helpers ---

    def _classify(self, root: Path) -> List[Path]:
        """Counts every file and returns the supported ones in walk order."""
        supported = []
        for path in iter_files(root, self.options.skip_dirs):
            self.stats.total_files += 1
            if self.writer.is_supported(path.name):
                supported.append(path)
            else:
                logging.debug(f"Skipping unsupported file: {path}")
                self._record(FileResult(path, FileStatus.SKIPPED, detail="unsupported format"))
        return supported

    def _apply(self, path: Path, target: datetime, original: Optional[datetime] = None) -> FileResult:
        try:
            outcome = self.writer.update_metadata(path, target, self.options.dry_run)
        except Exception as e:
            logging.error(f"Failed to update metadata for {path}: {e}")
            return FileResult(path, FileStatus.ERROR, original, target, detail=str(e))

        if outcome == WriteOutcome.SKIPPED:
            return FileResult(path, FileStatus.SKIPPED, original, target,
                              strategy=outcome.value, detail="embedded writer unavailable")

        logging.info(f"Successfully processed: {path.name} -> {_fmt(target)}")
        return FileResult(path, FileStatus.PROCESSED, original, target, strategy=outcome.value)

    def _map(self, func: Callable[[Path], T], paths: List[Path], desc: str) -> List[T]:
        """
        Runs func over paths, in parallel when max_workers > 1.
        Results come back in the order of `paths`.
        """
        workers = self.options.max_workers
        if workers <= 1 or len(paths) <= 1:
            return [func(p) for p in tqdm(paths, desc=desc, unit="file")]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results: Iterable[T] = executor.map(func, paths)
            return list(tqdm(results, total=len(paths), desc=desc, unit="file"))

    def _record(self, result: FileResult):
        self.stats.record(result)
        self.results.append(result)
