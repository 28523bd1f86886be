import logging
from datetime import datetime
from pathlib import Path

import exifread

from .. import config
from ..exceptions import TimestampReadError


class TimestampReader:
    """
    Finds the best-known original capture time of an image.

    Order of preference:
      1. Embedded EXIF tags (config.DATE_TAGS, most specific first).
      2. Filesystem modification time.
    """

    def read_original_timestamp(self, path: Path) -> datetime:
        """
        Never fails for a readable file. Losing the embedded value only
        degrades fidelity, so it is a warning.

        Raises:
            TimestampReadError: the file cannot be stat'ed or its mtime is out of range.
        """
        try:
            return self.read_embedded_timestamp(path)
        except TimestampReadError as e:
            logging.warning(f"{e}; falling back to file modification time for {path.name}")

        return self.read_filesystem_timestamp(path)

    def read_embedded_timestamp(self, path: Path) -> datetime:
        try:
            with path.open('rb') as f:
                # details=False skips makernotes, we only need the date tags
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            raise TimestampReadError(f"Could not read EXIF from {path.name}: {e}") from e

        if not tags:
            raise TimestampReadError(f"No EXIF data in {path.name}")

        dt = self._parse_exif_date(tags)
        if dt is None:
            raise TimestampReadError(f"No usable capture time tag in {path.name}")
        return dt

    def read_filesystem_timestamp(self, path: Path) -> datetime:
        try:
            mtime = path.stat().st_mtime
            # Embedded times have whole-second precision, keep the fallback comparable
            return datetime.fromtimestamp(mtime).replace(microsecond=0)
        except (OSError, OverflowError, ValueError) as e:
            raise TimestampReadError(f"Could not read modification time of {path}: {e}") from e

    def _parse_exif_date(self, tags):
        """Returns the first tag in config.DATE_TAGS that parses."""
        for tag in config.DATE_TAGS:
            if tag not in tags:
                continue
            raw = str(tags[tag]).strip().rstrip('\x00')
            try:
                return datetime.strptime(raw, config.EXIF_DATETIME_FORMAT)
            except ValueError:
                # Blank '0000:00:00 00:00:00' values are common on reset cameras
                logging.debug(f"Ignoring unparseable {tag}: {raw!r}")
                continue
        return None
