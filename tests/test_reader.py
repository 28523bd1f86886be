import logging
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import piexif
import pytest
from PIL import Image

from photo_retimer.exceptions import TimestampReadError
from photo_retimer.metadata.reader import TimestampReader


def test_reads_datetime_original(make_jpeg, tmp_path):
    dt = datetime(2022, 7, 8, 9, 10, 11)
    img = make_jpeg(tmp_path / "a.jpg", original=dt, generic=datetime(2030, 1, 1))

    assert TimestampReader().read_original_timestamp(img) == dt


def test_falls_back_to_generic_datetime(make_jpeg, tmp_path):
    dt = datetime(2021, 3, 4, 5, 6, 7)
    img = make_jpeg(tmp_path / "a.jpg", generic=dt)

    assert TimestampReader().read_embedded_timestamp(img) == dt


def test_blank_original_tag_is_ignored(tmp_path):
    exif = {
        "0th": {piexif.ImageIFD.DateTime: b"2020:02:02 02:02:02"},
        "Exif": {piexif.ExifIFD.DateTimeOriginal: b"0000:00:00 00:00:00"},
        "GPS": {}, "1st": {}, "thumbnail": None,
    }
    img = tmp_path / "reset.jpg"
    with Image.new("RGB", (8, 8)) as im:
        im.save(img, "JPEG", exif=piexif.dump(exif))

    assert TimestampReader().read_embedded_timestamp(img) == datetime(2020, 2, 2, 2, 2, 2)


def test_no_exif_falls_back_to_mtime_with_warning(make_jpeg, tmp_path, caplog):
    mtime = datetime(2018, 11, 12, 13, 14, 15)
    img = make_jpeg(tmp_path / "plain.jpg", mtime=mtime)

    with caplog.at_level(logging.WARNING):
        result = TimestampReader().read_original_timestamp(img)

    assert result == mtime
    assert "falling back to file modification time" in caplog.text


def test_png_uses_mtime(make_png, tmp_path):
    mtime = datetime(2017, 1, 2, 3, 4, 5)
    img = make_png(tmp_path / "shot.png", mtime=mtime)

    assert TimestampReader().read_original_timestamp(img) == mtime


def test_garbage_file_falls_back(tmp_path):
    img = tmp_path / "broken.jpg"
    img.write_bytes(b"not an image at all")

    reader = TimestampReader()
    with pytest.raises(TimestampReadError):
        reader.read_embedded_timestamp(img)
    assert reader.read_original_timestamp(img) == reader.read_filesystem_timestamp(img)


def test_missing_file_raises(tmp_path):
    with pytest.raises(TimestampReadError):
        TimestampReader().read_original_timestamp(tmp_path / "gone.jpg")


def test_out_of_range_mtime_raises(tmp_path, monkeypatch):
    img = tmp_path / "future.png"
    img.write_bytes(b"x")
    monkeypatch.setattr(Path, "stat", lambda self, **kwargs: SimpleNamespace(st_mtime=1e20))

    with pytest.raises(TimestampReadError):
        TimestampReader().read_filesystem_timestamp(img)
