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
#   Description : This script renames JPG, CR2 and HEIC files based on the meta
#                 date/time in the file, numbering the photos of each day in
#                 the order they were taken (YYYY_MM_DD-NNNN.ext).
#
#   Version History:
#   
#       Date        Description
#     -----------   -----------------------------------------------------------------------
#      2025-10-18    Original Creation
#      2026-10-18    Chronological per-day numbering, dry run, sub-directory search
#
###########################################################################################



import argparse
import enum
import errno
import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from capture_timestamp import CaptureTimestamp
from date_extractor import ExtractionError, extract_capture_timestamp
from rename_sequencer import (
    FileEntry, RenameDirective, SequenceOutcome, SkipReason, plan_renames, sort_entries
)

__version__ = "1.0.0"

SUPPORTED_EXTENSIONS = (".jpg", ".jpeg", ".cr2", ".heic", ".heif")
CONSOLE_HANDLER_NAME = "photo-date-rename"

logger = logging.getLogger(__name__)

Extractor = Callable[[str], Union[CaptureTimestamp, ExtractionError]]


class OutcomeKind(enum.Enum):
    APPLIED = "applied"
    WOULD_APPLY = "would apply"
    SKIPPED_NO_EXTENSION = "skipped, no extension"
    SKIPPED_DESTINATION_EXISTS = "skipped, destination exists"
    SKIPPED_EXTRACTION_ERROR = "skipped, no capture date"
    SKIPPED_RENAME_FAILED = "skipped, rename failed"


@dataclass(frozen=True)
class RenameOutcome:
    kind: OutcomeKind
    source: str
    destination: Optional[str] = None
    reason: Optional[str] = None

    def describe(self) -> str:
        if self.kind is OutcomeKind.APPLIED:
            return f"{self.source} -> {self.destination}"
        if self.kind is OutcomeKind.WOULD_APPLY:
            return f"{self.source} -> {self.destination} (dry run)"
        if self.kind is OutcomeKind.SKIPPED_NO_EXTENSION:
            return f"{self.source} skipped (Has no extension)"
        if self.kind is OutcomeKind.SKIPPED_DESTINATION_EXISTS:
            return f"{self.source} skipped (Would rename, but {self.destination} already exists)"
        if self.kind is OutcomeKind.SKIPPED_RENAME_FAILED:
            return f"{self.source} skipped (Rename failed: {self.reason})"
        return f"{self.source} skipped ({self.reason})"


def configure_logging(show_log: bool = False) -> logging.Handler:
    """
    Sends log records to stdout as "[LEVEL] message".

    The per-file report is logged at INFO and only shown with show_log, errors
    are always shown. Calling this again replaces the handler it installed
    before.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            root.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(logging.INFO if show_log else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root.addHandler(console_handler)
    root.setLevel(logging.INFO)

    # exifread warns about every file it cannot make sense of
    logging.getLogger("exifread").setLevel(logging.INFO if show_log else logging.ERROR)
    return console_handler


def _is_image(filename: str, extensions: Iterable[str]) -> bool:
    return not filename.startswith(".") and filename.lower().endswith(tuple(extensions))


def find_image_files(directory: str, recursive: bool = False,
                     extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> List[str]:
    image_files = []
    if recursive:
        for root, dirs, files in os.walk(directory):
            dirs[:] = sorted(d for d in dirs if not d.startswith("."))
            for file in sorted(files):
                if _is_image(file, extensions):
                    image_files.append(os.path.join(root, file))
    else:
        image_files = [
            os.path.join(directory, file)
            for file in sorted(os.listdir(directory))
            if _is_image(file, extensions) and os.path.isfile(os.path.join(directory, file))
        ]
    return image_files


def collect_entries(paths: Iterable[str],
                    extractor: Extractor = extract_capture_timestamp
                    ) -> Tuple[List[FileEntry], List[Tuple[str, ExtractionError]]]:
    valid_entries = []
    invalid_entries = []
    for path in paths:
        result = extractor(path)
        if isinstance(result, ExtractionError):
            invalid_entries.append((path, result))
        else:
            valid_entries.append(FileEntry(path, result))
    return valid_entries, invalid_entries


def apply_rename(directive: RenameDirective) -> RenameOutcome:
    # os.rename silently replaces an existing file on POSIX
    if os.path.lexists(directive.destination):
        error = FileExistsError(errno.EEXIST, "Destination appeared after planning",
                                directive.destination)
        return RenameOutcome(OutcomeKind.SKIPPED_RENAME_FAILED, directive.source,
                             directive.destination, str(error))
    try:
        os.rename(directive.source, directive.destination)
    except OSError as e:
        return RenameOutcome(OutcomeKind.SKIPPED_RENAME_FAILED, directive.source,
                             directive.destination, str(e))
    return RenameOutcome(OutcomeKind.APPLIED, directive.source, directive.destination)


def execute_plan(outcomes: Iterable[SequenceOutcome], dry_run: bool = False) -> Iterator[RenameOutcome]:
    """Renames (or, with dry_run, only reports) each planned file in order."""
    for outcome in outcomes:
        source = outcome.entry.path
        if outcome.skip_reason is SkipReason.NO_EXTENSION:
            yield RenameOutcome(OutcomeKind.SKIPPED_NO_EXTENSION, source)
        elif outcome.skip_reason is SkipReason.DESTINATION_EXISTS:
            yield RenameOutcome(OutcomeKind.SKIPPED_DESTINATION_EXISTS, source, outcome.destination)
        elif dry_run:
            yield RenameOutcome(OutcomeKind.WOULD_APPLY, source, outcome.destination)
        else:
            yield apply_rename(outcome.directive)


def rename_images_by_date(
    directory: str,
    dry_run: bool = False,
    recursive: bool = False,
    progress_callback=None,
    extractor: Extractor = extract_capture_timestamp
) -> Dict:
    """
    Renames every supported image in directory after its capture date.

    With recursive=True images in sub-directories are found too and moved up
    into directory. The whole plan is made before the first rename, so a dry
    run takes exactly the decisions a real run would.
    """
    if not os.path.isdir(directory):
        logger.error("Input path %s is not a directory!", directory)
        return {"status": "error", "message": f"Input path '{directory}' is not a directory."}

    image_files = find_image_files(directory, recursive=recursive)
    if not image_files:
        logger.info("No image files found in %s", directory)
        return {"status": "completed", "dry_run": dry_run, "files_renamed": 0,
                "files_skipped": 0, "files_failed": 0, "outcomes": [],
                "message": "No image files found."}

    results = []

    def report(outcome):
        results.append(outcome)
        logger.info(outcome.describe())
        if progress_callback:
            progress_callback(len(results), len(image_files), os.path.basename(outcome.source),
                              int((len(results) / len(image_files)) * 100))

    valid_entries, invalid_entries = collect_entries(image_files, extractor)
    for path, error in invalid_entries:
        report(RenameOutcome(OutcomeKind.SKIPPED_EXTRACTION_ERROR, path, reason=str(error)))

    plan = list(plan_renames(sort_entries(valid_entries), directory))
    for outcome in execute_plan(plan, dry_run=dry_run):
        report(outcome)

    renamed = sum(1 for r in results if r.kind in (OutcomeKind.APPLIED, OutcomeKind.WOULD_APPLY))
    failed = sum(1 for r in results if r.kind is OutcomeKind.SKIPPED_RENAME_FAILED)
    skipped = len(results) - renamed - failed
    verb = "Would rename" if dry_run else "Renamed"

    return {
        "status": "completed",
        "dry_run": dry_run,
        "files_renamed": renamed,
        "files_skipped": skipped,
        "files_failed": failed,
        "outcomes": results,
        "message": f"{verb} {renamed} of {len(image_files)} files."
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="photo-date-rename",
        description="Renames JPEGs and related images based on the date they were taken"
    )
    parser.add_argument("directory", help="The folder in which to rename images")
    parser.add_argument("-l", "--log", action="store_true",
                        help="Log each file inspected, and the action taken on it.")
    parser.add_argument("--dry-run", action="store_true",
                        help="Don't perform any actual renaming.")
    parser.add_argument("-d", "--deep", action="store_true",
                        help="Also search sub-directories for files, and move them into the working directory.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    configure_logging(args.log)
    result = rename_images_by_date(args.directory, dry_run=args.dry_run, recursive=args.deep)
    if result["status"] == "error":
        return 1

    logger.info(result["message"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
