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
#   Description : Turns the chronologically sorted list of photos into rename
#                 directives of the form YYYY_MM_DD-NNNN.ext, numbering the
#                 photos of each day and refusing names that are already taken.
#
#   Version History:
#   
#       Date        Description
#     -----------   -----------------------------------------------------------------------
#      2026-10-18    Original Creation
#
###########################################################################################



import enum
import os
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from capture_timestamp import DEFAULT_COMPARATOR, CaptureTimestamp, IgnoreOffsetComparator


class SkipReason(enum.Enum):
    NO_EXTENSION = "Has no extension"
    DESTINATION_EXISTS = "Destination already exists"


@dataclass(frozen=True)
class FileEntry:
    path: str
    timestamp: CaptureTimestamp


@dataclass(frozen=True)
class RenameDirective:
    source: str
    destination: str


@dataclass(frozen=True)
class SequenceOutcome:
    entry: FileEntry
    directive: Optional[RenameDirective] = None
    skip_reason: Optional[SkipReason] = None
    destination: Optional[str] = None
    counter: Optional[int] = None


@dataclass(frozen=True)
class SequenceState:
    """
    Accumulator threaded through the sequencing pass.

    ``counter`` is the last number handed out on the current day (0 before
    any), ``previous_numbered`` tells whether ``previous`` holds it.
    """
    previous: Optional[CaptureTimestamp] = None
    counter: int = 0
    previous_numbered: bool = False


def sort_entries(entries: Iterable[FileEntry],
                 comparator: IgnoreOffsetComparator = DEFAULT_COMPARATOR) -> List[FileEntry]:
    """Sorts ascending by capture time; entries with equal times keep their input order."""
    key = comparator.sort_key()
    return sorted(entries, key=lambda entry: key(entry.timestamp))


def destination_name(timestamp: CaptureTimestamp, counter: int, extension: str) -> str:
    stem = f"{timestamp.year}_{timestamp.month:02d}_{timestamp.day:02d}-{counter:04d}"
    return stem + extension


def advance(state: SequenceState, timestamp: CaptureTimestamp,
            comparator: IgnoreOffsetComparator = DEFAULT_COMPARATOR,
            numbered: bool = True) -> SequenceState:
    """
    Folds one timestamp into the state.

    A new day starts again from 1. A photo taken at exactly the same time as
    the numbered photo before it shares that photo's number, any other photo
    of the same day gets the next one. With numbered=False the timestamp
    becomes ``previous`` without using up a number; when it repeats the
    previous numbered time it passes that number on unchanged.
    """
    if state.previous is None or not comparator.same_date(timestamp, state.previous):
        counter = 0
    else:
        counter = state.counter

    repeats_numbered = bool(state.previous_numbered and counter
                            and comparator.equals(timestamp, state.previous))

    if not numbered:
        return SequenceState(timestamp, counter, repeats_numbered)

    if not repeats_numbered:
        counter += 1
    return SequenceState(timestamp, counter, True)


def _claim_key(destination: str) -> str:
    # case-insensitive file systems see a.jpg and a.JPG as one name
    directory, name = os.path.split(os.path.abspath(destination))
    return os.path.join(os.path.normcase(directory), name.lower())


def plan_renames(entries: Iterable[FileEntry],
                 destination_dir: str,
                 exists: Callable[[str], bool] = os.path.lexists,
                 comparator: IgnoreOffsetComparator = DEFAULT_COMPARATOR) -> Iterator[SequenceOutcome]:
    """
    Yields one SequenceOutcome per entry of an already sorted list.

    Destinations are checked against the file system through ``exists`` and
    against every destination handed out earlier in the same pass. Nothing is
    renamed here.
    """
    state = SequenceState()
    claimed = set()

    for entry in entries:
        extension = os.path.splitext(entry.path)[1]
        if not extension:
            state = advance(state, entry.timestamp, comparator, numbered=False)
            yield SequenceOutcome(entry, skip_reason=SkipReason.NO_EXTENSION)
            continue

        state = advance(state, entry.timestamp, comparator)
        destination = os.path.join(destination_dir,
                                   destination_name(entry.timestamp, state.counter, extension))
        claim_key = _claim_key(destination)

        if claim_key in claimed or exists(destination):
            yield SequenceOutcome(entry, skip_reason=SkipReason.DESTINATION_EXISTS,
                                  destination=destination, counter=state.counter)
            continue

        claimed.add(claim_key)
        yield SequenceOutcome(entry, directive=RenameDirective(entry.path, destination),
                              destination=destination, counter=state.counter)
