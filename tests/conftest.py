import os

import pytest
from PIL import Image

from capture_timestamp import CaptureTimestamp

EXIF_DATETIME_TAG = 0x0132
EXIF_MAKE_TAG = 0x010F


def write_jpeg(path, date_time=None, make=None):
    """Writes a tiny JPEG, optionally carrying DateTime/Make EXIF tags."""
    exif = Image.Exif()
    if date_time is not None:
        exif[EXIF_DATETIME_TAG] = date_time
    if make is not None:
        exif[EXIF_MAKE_TAG] = make
    options = {"exif": exif} if len(exif) else {}
    Image.new("RGB", (8, 8), color=(200, 120, 40)).save(str(path), "JPEG", **options)
    return str(path)


def touch(path):
    with open(str(path), "wb") as f:
        f.write(b"")
    return str(path)


def ts(year, month, day, hour=0, minute=0, second=0, nanosecond=0, offset=None):
    return CaptureTimestamp(year, month, day, hour, minute, second, nanosecond, offset)


@pytest.fixture
def fake_extractor():
    """Extractor looking up capture times by file name instead of reading EXIF."""
    def build(timestamps):
        def extractor(path):
            return timestamps[os.path.basename(path)]
        return extractor
    return build
