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
#   Description : Capture timestamp value type read from EXIF DateTime fields,
#                 plus the comparator used to put photos in chronological order.
#
#   Version History:
#   
#       Date        Description
#     -----------   -----------------------------------------------------------------------
#      2026-10-18    Original Creation
#
###########################################################################################



import re
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Optional

EXIF_DATETIME_PATTERN = re.compile(r"([0-9]{4}):([0-9]{2}):([0-9]{2}) ([0-9]{2}):([0-9]{2}):([0-9]{2})")
EXIF_BLANK_DATETIMES = ("    :  :     :  :  ", " " * 19)
EXIF_OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):(\d{2})$")
NANOSECOND_DIGITS = 9


class TimestampParseError(ValueError):
    pass


@dataclass(frozen=True)
class CaptureTimestamp:
    """
    Wall-clock capture time as recorded by the camera.

    ``offset`` is minutes east of UTC when the file records one. It is kept for
    display only; ordering goes through IgnoreOffsetComparator.
    """
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    nanosecond: int = 0
    offset: Optional[int] = None

    def fields(self):
        return (self.year, self.month, self.day,
                self.hour, self.minute, self.second, self.nanosecond)

    def __str__(self):
        text = (f"{self.year:04d}-{self.month:02d}-{self.day:02d} "
                f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}")
        if self.nanosecond:
            text += f".{self.nanosecond:09d}"
        if self.offset is not None:
            sign = "-" if self.offset < 0 else "+"
            hours, minutes = divmod(abs(self.offset), 60)
            text += f" {sign}{hours:02d}:{minutes:02d}"
        return text


def parse_exif_datetime(text: str) -> CaptureTimestamp:
    """
    Parses an EXIF "YYYY:MM:DD HH:MM:SS" value.

    Only the layout of the first 19 characters is checked. Anything after them
    is ignored and the fields are not range checked.
    """
    cleaned = text.rstrip("\x00")
    if cleaned in EXIF_BLANK_DATETIMES:
        raise TimestampParseError("DateTime value is blank")
    match = EXIF_DATETIME_PATTERN.match(cleaned)
    if not match:
        raise TimestampParseError(f"'{cleaned}' is not in YYYY:MM:DD HH:MM:SS format")
    year, month, day, hour, minute, second = (int(group) for group in match.groups())
    return CaptureTimestamp(year, month, day, hour, minute, second)


def with_subsec(timestamp: CaptureTimestamp, text: str) -> CaptureTimestamp:
    """
    Returns a copy of timestamp refined with an EXIF SubSecTime value.

    SubSecTime holds the leading digits of the fraction of a second, so "5"
    means half a second and "123" means 123 milliseconds. Digits past the
    ninth are dropped and a space ends the value.
    """
    digits = ""
    for char in text.rstrip("\x00"):
        if char == " ":
            break
        if not char.isdigit() or not char.isascii():
            raise TimestampParseError(f"'{text}' is not a valid sub-second value")
        digits += char
        if len(digits) == NANOSECOND_DIGITS:
            break
    if not digits:
        raise TimestampParseError(f"'{text}' contains no sub-second digits")
    nanosecond = int(digits.ljust(NANOSECOND_DIGITS, "0"))
    return replace(timestamp, nanosecond=nanosecond)


def parse_offset(text: str) -> int:
    """Parses an EXIF OffsetTime value such as "+09:00" into minutes."""
    match = EXIF_OFFSET_PATTERN.match(text.rstrip("\x00").strip())
    if not match:
        raise TimestampParseError(f"'{text}' is not a valid UTC offset")
    sign, hours, minutes = match.groups()
    total = int(hours) * 60 + int(minutes)
    return -total if sign == "-" else total


class IgnoreOffsetComparator:
    """
    Orders timestamps by their recorded wall-clock fields only.

    Cameras often leave out or misrecord the UTC offset, so two shots from the
    same trip are compared on the local time they show.
    """

    def compare(self, a: CaptureTimestamp, b: CaptureTimestamp) -> int:
        for left, right in zip(a.fields(), b.fields()):
            if left != right:
                return -1 if left < right else 1
        return 0

    def equals(self, a: CaptureTimestamp, b: CaptureTimestamp) -> bool:
        return a.fields() == b.fields()

    def same_date(self, a: CaptureTimestamp, b: CaptureTimestamp) -> bool:
        return (a.year, a.month, a.day) == (b.year, b.month, b.day)

    def sort_key(self):
        return cmp_to_key(self.compare)


DEFAULT_COMPARATOR = IgnoreOffsetComparator()
