import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import piexif
import pytest
from PIL import Image


def _exif_stamp(dt: datetime) -> bytes:
    return dt.strftime("%Y:%m:%d %H:%M:%S").encode("ascii")


def write_jpeg(path: Path,
               original: Optional[datetime] = None,
               generic: Optional[datetime] = None,
               make: Optional[str] = None,
               mtime: Optional[datetime] = None) -> Path:
    """Creates a small JPEG, optionally with EXIF date tags."""
    exif = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "thumbnail": None}
    if original:
        exif["Exif"][piexif.ExifIFD.DateTimeOriginal] = _exif_stamp(original)
    if generic:
        exif["0th"][piexif.ImageIFD.DateTime] = _exif_stamp(generic)
    if make:
        exif["0th"][piexif.ImageIFD.Make] = make.encode("ascii")

    path.parent.mkdir(parents=True, exist_ok=True)
    with Image.new("RGB", (16, 16), color="red") as im:
        if original or generic or make:
            im.save(path, "JPEG", exif=piexif.dump(exif))
        else:
            im.save(path, "JPEG")

    if mtime:
        ts = mtime.timestamp()
        os.utime(path, (ts, ts))
    return path


def write_png(path: Path, mtime: Optional[datetime] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with Image.new("RGB", (16, 16), color="blue") as im:
        im.save(path, "PNG")
    if mtime:
        ts = mtime.timestamp()
        os.utime(path, (ts, ts))
    return path


def read_exif_dates(path: Path) -> dict:
    exif = piexif.load(str(path))
    return {
        "DateTime": exif["0th"].get(piexif.ImageIFD.DateTime),
        "DateTimeOriginal": exif["Exif"].get(piexif.ExifIFD.DateTimeOriginal),
        "DateTimeDigitized": exif["Exif"].get(piexif.ExifIFD.DateTimeDigitized),
    }


def file_mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime).replace(microsecond=0)


@pytest.fixture
def make_jpeg():
    return write_jpeg


@pytest.fixture
def make_png():
    return write_png
