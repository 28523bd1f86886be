import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .. import config
from ..exceptions import EmptyInputError, PhaseError, TimestampRangeError
from ..models import PhotoRecord


class Phase(str, Enum):
    COLLECTING = "collecting"
    COMPUTING = "computing"
    APPLYING = "applying"


class SequentialCalculator:
    """
    Shifts a whole photo set to a new base time while keeping the exact
    time differences between photos.

    Lifecycle (one instance per run):
      1. COLLECTING: add_photo() for every file.
      2. COMPUTING:  calculate_new_times() sorts and assigns, exactly once.
      3. APPLYING:   get_photo_new_time() lookups for the write pass.

    The earliest original timestamp is the anchor, so nothing can be
    computed until every photo has been added.
    """

    def __init__(self, base_timestamp: datetime):
        self._base = base_timestamp
        self._records: List[PhotoRecord] = []
        self._index: Dict[Path, PhotoRecord] = {}
        self._seen: set[Path] = set()
        self._phase = Phase.COLLECTING

    @property
    def phase(self) -> Phase:
        return self._phase

    def add_photo(self, path: Path, original_timestamp: datetime):
        if self._phase != Phase.COLLECTING:
            raise PhaseError(f"Cannot add photos while {self._phase.value}")

        path = Path(path)
        if path in self._seen:
            # Kept as a separate record; lookup returns the earliest one
            logging.warning(f"Duplicate path added to sequential set: {path}")
        self._seen.add(path)

        self._records.append(PhotoRecord(
            path=path,
            original_timestamp=original_timestamp,
            sequence=len(self._records),
        ))

    def calculate_new_times(self):
        """
        Assigns the base time to the earliest photo and offsets every other
        photo by its distance from that photo.

        Raises:
            EmptyInputError: nothing was collected.
            PhaseError: called more than once.
            TimestampRangeError: a shifted time falls outside the datetime range.
        """
        if self._phase != Phase.COLLECTING:
            raise PhaseError("New times have already been calculated")
        if not self._records:
            raise EmptyInputError("No photos were collected; nothing to anchor the base time to")

        self._phase = Phase.COMPUTING

        # sort() is stable, the sequence key just makes the tie-break explicit
        ordered = sorted(self._records, key=lambda r: (r.original_timestamp, r.sequence))
        first_original = ordered[0].original_timestamp

        index: Dict[Path, PhotoRecord] = {}
        for rec in ordered:
            delta = rec.original_timestamp - first_original
            try:
                rec.new_timestamp = self._base + delta
            except OverflowError as e:
                for r in ordered:
                    r.new_timestamp = None
                self._phase = Phase.COLLECTING
                raise TimestampRangeError(
                    f"Shifting {rec.path.name} by {delta} from {self._base} leaves the supported date range"
                ) from e
            index.setdefault(rec.path, rec)

            logging.debug(
                f"{rec.path.name}: {rec.original_timestamp.strftime(config.DISPLAY_FORMAT)} -> "
                f"{rec.new_timestamp.strftime(config.DISPLAY_FORMAT)} (diff: {delta})"
            )

        # Publish only once the whole set has been computed
        self._records = ordered
        self._index = index
        self._phase = Phase.APPLYING

    def get_photo_new_time(self, path: Path) -> Optional[datetime]:
        """Returns None if times are not calculated yet or the path is unknown."""
        if self._phase != Phase.APPLYING:
            return None
        rec = self._index.get(Path(path))
        return rec.new_timestamp if rec else None

    def get_photo_count(self) -> int:
        return len(self._records)

    def records(self) -> List[PhotoRecord]:
        """Chronologically sorted records; empty until calculation has run."""
        if self._phase != Phase.APPLYING:
            return []
        return list(self._records)
