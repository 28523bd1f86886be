from datetime import datetime
from pathlib import Path
from typing import List

from .. import config
from ..exceptions import TimestampParseError


class FilenameDateParser:
    """
    Extracts a capture time from names like 'IMG_20230101_101500.jpg'.

    The primary format is tried first, then config.FILENAME_FALLBACK_FORMATS.
    Each format is tried on the bare stem and again with a common camera
    prefix (IMG_, VID_, ...) removed.
    """

    def __init__(self, primary_format: str = config.DEFAULT_FILENAME_FORMAT):
        self.primary_format = primary_format

    def formats(self) -> List[str]:
        ordered = [self.primary_format] + config.FILENAME_FALLBACK_FORMATS
        return list(dict.fromkeys(ordered))

    def parse(self, filename: str) -> datetime:
        stem = Path(filename).stem
        clean = self._remove_common_prefix(stem)

        for fmt in self.formats():
            for candidate in (stem, clean):
                try:
                    return datetime.strptime(candidate, fmt)
                except ValueError:
                    continue

        raise TimestampParseError(f"Could not parse date from filename: {filename}")

    def _remove_common_prefix(self, stem: str) -> str:
        upper = stem.upper()
        for prefix in config.FILENAME_PREFIXES:
            if upper.startswith(prefix.upper()):
                return stem[len(prefix):]
        return stem
