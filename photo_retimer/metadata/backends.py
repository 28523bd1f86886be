"""
Strategies for rewriting the capture-time tags embedded in an image.

Both backends set the generic DateTime and the more specific
DateTimeOriginal / DateTimeDigitized (CreateDate) fields to the same value,
because different viewers prefer different fields.
"""
import io
import logging
import os
import shutil
import subprocess
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import piexif

from .. import config
from ..exceptions import ConfigurationError, MetadataWriteError


def set_file_times(path: Path, target: datetime):
    """Sets atime and mtime. Naive datetimes are taken as local time."""
    ts = target.timestamp()
    try:
        os.utime(path, (ts, ts))
    except OSError as e:
        raise MetadataWriteError(f"Failed to set file times: {e}") from e


def _empty_exif() -> dict:
    return {"0th": {}, "Exif": {}, "GPS": {}, "Interop": {}, "1st": {}, "thumbnail": None}


class PiexifBackend:
    """
    In-process rewrite of the JPEG EXIF segment.

    The new image is built in memory, written to a temp file next to the
    original and renamed over it, so a failed write never leaves a
    half-written photo behind.
    """
    name = "piexif"
    available = True

    def write(self, path: Path, target: datetime) -> bool:
        stamp = target.strftime(config.EXIF_DATETIME_FORMAT).encode('ascii')

        try:
            data = path.read_bytes()
        except OSError as e:
            raise MetadataWriteError(f"Failed to read file: {e}") from e

        if data[0:2] != b"\xff\xd8":
            raise MetadataWriteError("Not a JPEG file (missing SOI marker)")

        exif_dict = self._load_exif(data, path)
        exif_bytes = self._dump_with_dates(exif_dict, stamp, path)

        out = io.BytesIO()
        try:
            piexif.insert(exif_bytes, data, out)
        except Exception as e:
            raise MetadataWriteError(f"Failed to insert EXIF into JPEG: {e}") from e

        self._replace_contents(path, out.getvalue())
        set_file_times(path, target)
        return True

    def _load_exif(self, data: bytes, path: Path) -> dict:
        try:
            return piexif.load(data)
        except Exception as e:
            logging.warning(f"Unreadable EXIF in {path.name} ({e}); creating a new EXIF block")
            return _empty_exif()

    def _dump_with_dates(self, exif_dict: dict, stamp: bytes, path: Path) -> bytes:
        """
        Serialises the container with the new dates. Containers piexif cannot
        re-serialise are rebuilt: first without thumbnail, IFD1, interop and
        maker notes, then with the date fields only.
        """
        pruned = {
            "0th": dict(exif_dict.get("0th") or {}),
            "Exif": {k: v for k, v in (exif_dict.get("Exif") or {}).items()
                     if k != piexif.ExifIFD.MakerNote},
            "GPS": dict(exif_dict.get("GPS") or {}),
            "Interop": {}, "1st": {}, "thumbnail": None,
        }
        candidates = [("existing", exif_dict), ("pruned", pruned), ("clean", _empty_exif())]

        last_error: Optional[Exception] = None
        for label, candidate in candidates:
            self._set_dates(candidate, stamp)
            try:
                exif_bytes = piexif.dump(candidate)
            except Exception as e:
                last_error = e
                logging.warning(f"Could not serialise {label} EXIF for {path.name}: {e}")
                continue
            if label != "existing":
                logging.warning(f"Rebuilt EXIF container for {path.name} ({label})")
            return exif_bytes

        raise MetadataWriteError(f"Failed to build EXIF: {last_error}")

    def _set_dates(self, exif_dict: dict, stamp: bytes):
        exif_dict.setdefault("0th", {})[piexif.ImageIFD.DateTime] = stamp
        exif_ifd = exif_dict.setdefault("Exif", {})
        exif_ifd[piexif.ExifIFD.DateTimeOriginal] = stamp
        exif_ifd[piexif.ExifIFD.DateTimeDigitized] = stamp

    def _replace_contents(self, path: Path, payload: bytes):
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            shutil.copymode(path, tmp)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise MetadataWriteError(f"Failed to write file: {e}") from e


class ExiftoolBackend:
    """
    Delegates the rewrite to the 'exiftool' command line utility.

    Availability is checked once; when the tool is missing every write is
    skipped with a single warning instead of failing.
    """
    name = "exiftool"

    def __init__(self,
                 executable: str = config.EXIFTOOL_EXECUTABLE,
                 available: Optional[bool] = None,
                 timeout: float = config.EXIFTOOL_TIMEOUT_SEC):
        self.executable = executable
        self.timeout = timeout
        self.available = self._probe() if available is None else available
        self._warned = False
        self._warn_lock = threading.Lock()

    def write(self, path: Path, target: datetime) -> bool:
        """Returns False when the write was skipped because exiftool is missing."""
        if not self.available:
            self._warn_unavailable()
            return False

        # 1. Clean & rebuild: repairs broken containers, failure is tolerable
        try:
            self._run([
                "-m", "-all=", "-tagsfromfile", "@", "-all:all",
                "-unsafe", "-icc_profile", "-overwrite_original", str(path),
            ])
        except MetadataWriteError as e:
            logging.warning(f"exiftool cleanup failed for {path.name}, keeping original container: {e}")

        # 2. Set dates, failure here fails the file
        stamp = target.strftime(config.EXIF_DATETIME_FORMAT)
        self._run([
            "-overwrite_original",
            f"-DateTimeOriginal={stamp}",
            f"-CreateDate={stamp}",
            f"-ModifyDate={stamp}",
            f"-FileModifyDate={stamp}",
            str(path),
        ])
        return True

    def _warn_unavailable(self):
        with self._warn_lock:
            if self._warned:
                return
            self._warned = True
        logging.warning(
            f"'{self.executable}' is not available; embedded timestamps will not be written "
            "and affected files are reported as skipped."
        )

    def _probe(self) -> bool:
        try:
            result = subprocess.run(
                [self.executable, "-ver"],
                capture_output=True, text=True, timeout=self.timeout, check=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logging.debug(f"exiftool probe failed: {e}")
            return False
        logging.info(f"Using exiftool {result.stdout.strip()}")
        return True

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise MetadataWriteError(f"exiftool timed out after {self.timeout}s") from e
        except OSError as e:
            raise MetadataWriteError(f"Could not run exiftool: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise MetadataWriteError(detail or f"exiftool exited with code {result.returncode}")
        return result


def build_backend(name: str, exiftool_path: Optional[str] = None):
    if name == "piexif":
        return PiexifBackend()
    if name == "exiftool":
        return ExiftoolBackend(executable=exiftool_path or config.EXIFTOOL_EXECUTABLE)
    raise ConfigurationError(f"Unknown backend '{name}', expected one of {', '.join(config.BACKENDS)}")
