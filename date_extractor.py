#############################################################################################
#############################################################################################
#
#   The MIT License (MIT)
#   
#   Copyright (c) 2023 http://odelay.io 
#   
#   Permission is hereby granted, free of charge, to any person obtaining a copy
#   of this software and associated documentation files (the "Software"), to deal
#   in the Software without restriction, including without limitation the rights
#   to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
#   copies of the Software, and to permit persons to whom the Software is
#   furnished to do so, subject to the following conditions:
#   
#   The above copyright notice and this permission notice shall be included in all
#   copies or substantial portions of the Software.
#   
#   THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
#   IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
#   FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
#   AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
#   LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
#   OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
#   SOFTWARE.
#   
#   Contact : <everett@odelay.io>
#  
#   Description : Reads the capture date/time out of an image file's EXIF block.
#                 JPEG and raw files go through exifread, HEIC/HEIF files through
#                 Pillow with the pillow-heif opener registered.
#
#   Version History:
#   
#       Date        Description
#     -----------   -----------------------------------------------------------------------
#      2026-10-18    Original Creation
#
###########################################################################################



import enum
import logging
import os
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Dict, List, Optional, Union

import exifread
from PIL import Image
from pillow_heif import register_heif_opener

from capture_timestamp import (
    CaptureTimestamp, TimestampParseError, parse_exif_datetime, parse_offset, with_subsec
)

logger = logging.getLogger(__name__)

register_heif_opener()

DATETIME_FIELD = "DateTime"
SUBSEC_FIELD = "SubSecTime"
OFFSET_FIELD = "OffsetTime"

# exifread tag names; older exifread releases do not know OffsetTime by name
EXIFREAD_TAG_NAMES = {
    DATETIME_FIELD: ("Image DateTime",),
    SUBSEC_FIELD: ("EXIF SubSecTime",),
    OFFSET_FIELD: ("EXIF OffsetTime", "EXIF Tag 0x9010"),
}
EXIF_ASCII_TYPE = 2

# Pillow tag ids: DateTime lives in IFD0, the other two in the Exif sub-IFD
PILLOW_DATETIME_TAG = 0x0132
PILLOW_EXIF_IFD = 0x8769
PILLOW_SUBSEC_TAG = 0x9290
PILLOW_OFFSET_TAG = 0x9010

PILLOW_EXTENSIONS = (".heic", ".heif")


class ExtractionFailure(enum.Enum):
    UNREADABLE = "Could not open file"
    METADATA_UNREADABLE = "Could not read EXIF metadata"
    FIELD_MISSING = "DateTime field is missing"
    FIELD_NOT_TEXT = "DateTime field is not in ascii format"
    FIELD_EMPTY = "DateTime field contains no data"
    PARSE_FAILED = "DateTime field data could not be parsed"


@dataclass(frozen=True)
class ExtractionError:
    failure: ExtractionFailure
    cause: Optional[BaseException] = None

    def __str__(self):
        if self.cause is not None:
            return f"{self.failure.value}: {self.cause}"
        return self.failure.value


@dataclass
class MetadataField:
    """One EXIF tag as seen by the extractor, whatever library decoded it."""
    is_text: bool
    values: List[str] = field(default_factory=list)


def _text_values(raw) -> List[str]:
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="replace")
    return [part for part in str(raw).split("\x00") if part]


def read_exifread_fields(f: BinaryIO) -> Dict[str, MetadataField]:
    tags = exifread.process_file(f, details=False)
    if not tags:
        raise ValueError("no EXIF data found")

    fields = {}
    for name, tag_names in EXIFREAD_TAG_NAMES.items():
        for tag_name in tag_names:
            tag = tags.get(tag_name)
            if tag is None:
                continue
            if tag.field_type == EXIF_ASCII_TYPE:
                fields[name] = MetadataField(True, _text_values(tag.values))
            else:
                fields[name] = MetadataField(False)
            break
    return fields


def _pillow_field(value) -> MetadataField:
    if isinstance(value, str):
        return MetadataField(True, _text_values(value))
    return MetadataField(False)


def read_pillow_fields(f: BinaryIO) -> Dict[str, MetadataField]:
    fields = {}
    with Image.open(f) as image:
        exif = image.getexif()
        if not exif:
            raise ValueError("no EXIF data found")

        if PILLOW_DATETIME_TAG in exif:
            fields[DATETIME_FIELD] = _pillow_field(exif[PILLOW_DATETIME_TAG])
        exif_ifd = exif.get_ifd(PILLOW_EXIF_IFD)
        if PILLOW_SUBSEC_TAG in exif_ifd:
            fields[SUBSEC_FIELD] = _pillow_field(exif_ifd[PILLOW_SUBSEC_TAG])
        if PILLOW_OFFSET_TAG in exif_ifd:
            fields[OFFSET_FIELD] = _pillow_field(exif_ifd[PILLOW_OFFSET_TAG])
    return fields


def _optional_text(fields: Dict[str, MetadataField], name: str) -> Optional[str]:
    metadata_field = fields.get(name)
    if metadata_field is None or not metadata_field.is_text or not metadata_field.values:
        return None
    return metadata_field.values[0]


def timestamp_from_fields(fields: Dict[str, MetadataField]) -> Union[CaptureTimestamp, ExtractionError]:
    """
    Builds the capture timestamp from decoded EXIF fields.

    DateTime is required. SubSecTime and OffsetTime only refine it, so a
    malformed value in either one leaves the coarse timestamp as it is.
    """
    date_time = fields.get(DATETIME_FIELD)
    if date_time is None:
        return ExtractionError(ExtractionFailure.FIELD_MISSING)
    if not date_time.is_text:
        return ExtractionError(ExtractionFailure.FIELD_NOT_TEXT)
    if not date_time.values:
        return ExtractionError(ExtractionFailure.FIELD_EMPTY)

    try:
        timestamp = parse_exif_datetime(date_time.values[0])
    except TimestampParseError as e:
        return ExtractionError(ExtractionFailure.PARSE_FAILED, e)

    subsec = _optional_text(fields, SUBSEC_FIELD)
    if subsec is not None:
        try:
            timestamp = with_subsec(timestamp, subsec)
        except TimestampParseError as e:
            logger.debug("Ignoring sub-second value: %s", e)

    offset = _optional_text(fields, OFFSET_FIELD)
    if offset is not None:
        try:
            timestamp = replace(timestamp, offset=parse_offset(offset))
        except TimestampParseError as e:
            logger.debug("Ignoring offset value: %s", e)

    return timestamp


def extract_capture_timestamp(path: str) -> Union[CaptureTimestamp, ExtractionError]:
    """Returns the capture timestamp of the image at path, or why there is none."""
    if os.path.splitext(path)[1].lower() in PILLOW_EXTENSIONS:
        read_fields = read_pillow_fields
    else:
        read_fields = read_exifread_fields

    try:
        f = open(path, "rb")
    except OSError as e:
        logger.debug("Could not open %s: %s", path, e)
        return ExtractionError(ExtractionFailure.UNREADABLE, e)

    with f:
        try:
            fields = read_fields(f)
        except Exception as e:
            logger.debug("Could not read EXIF from %s: %s", path, e)
            return ExtractionError(ExtractionFailure.METADATA_UNREADABLE, e)

    result = timestamp_from_fields(fields)
    if isinstance(result, ExtractionError):
        logger.debug("No usable capture time in %s: %s", path, result)
    return result
