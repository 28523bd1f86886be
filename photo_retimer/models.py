from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


@dataclass
class PhotoRecord:
    """
    One photo collected by the sequential policy.
    """
    path: Path
    original_timestamp: datetime
    sequence: int                   # insertion order, used as the tie-break
    new_timestamp: Optional[datetime] = None


class FileStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class FileResult:
    """
    Outcome of handling a single file during a run.
    """
    path: Path
    status: FileStatus
    original_timestamp: Optional[datetime] = None
    target_timestamp: Optional[datetime] = None
    strategy: Optional[str] = None
    detail: Optional[str] = None    # error cause or skip reason


@dataclass
class ProcessingStats:
    total_files: int = 0
    processed_files: int = 0
    skipped_files: int = 0
    error_files: int = 0

    def record(self, result: FileResult):
        if result.status == FileStatus.PROCESSED:
            self.processed_files += 1
        elif result.status == FileStatus.SKIPPED:
            self.skipped_files += 1
        else:
            self.error_files += 1
