"""
Expired file selection and deletion for one datatype directory.

A file is expired when the hour parsed from its name is strictly earlier
than `current_timestamp - retention`. Expired hours are matched back to
files by their `YYYYMMDDTHH` stamp, so sidecar files of the same hour
(`.tif.aux.xml`, `.json`, ...) are removed together with the raster.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

import dagster as dg

from dataset_archive.archive.errors import ArchiveError, DirectoryListError, FileDeleteError, ParseError
from dataset_archive.archive.filenames import hour_stamp, parse_dataset_filename
from dataset_archive.defs.models import DEFAULT_RETENTION

logger = dg.get_dagster_logger(__name__)


@dataclass
class ExpiredSelection:
    """Files selected for deletion and names that could not be parsed."""

    expired: list[str] = field(default_factory=list)
    unparseable: list[str] = field(default_factory=list)


@dataclass
class FileCleanupResult:
    deleted: list[str] = field(default_factory=list)
    unparseable: list[str] = field(default_factory=list)
    errors: list[ArchiveError] = field(default_factory=list)


def select_expired(
    filenames: list[str],
    current_timestamp: datetime,
    retention: timedelta = DEFAULT_RETENTION,
) -> ExpiredSelection:
    """
    Select expired names from a directory listing.

    Args:
        filenames: Bare filenames in one directory
        current_timestamp: Hour-aligned UTC timestamp of the running job
        retention: Retention window

    Returns:
        ExpiredSelection with sorted, de-duplicated expired names
    """
    cutoff = current_timestamp - retention
    selection = ExpiredSelection()
    expired_stamps: set[str] = set()

    for name in filenames:
        try:
            dataset = parse_dataset_filename(name)
        except ParseError as e:
            logger.warning(f"Skipping file during retention scan: {e}")
            selection.unparseable.append(name)
            continue
        if dataset.timestamp < cutoff:
            expired_stamps.add(hour_stamp(dataset.timestamp))

    selection.expired = sorted(
        name for name in filenames if any(stamp in name for stamp in expired_stamps)
    )
    return selection


def find_expired_files(
    directory: Path,
    current_timestamp: datetime,
    retention: timedelta = DEFAULT_RETENTION,
) -> ExpiredSelection:
    """
    List `directory` and select its expired files. Missing directories select nothing.

    Raises:
        DirectoryListError: If the directory exists but cannot be listed
    """
    directory = Path(directory)
    if not directory.is_dir():
        return ExpiredSelection()
    try:
        filenames = [entry.name for entry in directory.iterdir() if entry.is_file()]
    except OSError as e:
        raise DirectoryListError(directory, e) from e
    return select_expired(filenames, current_timestamp, retention)


def purge_expired_files(
    directory: Path,
    current_timestamp: datetime,
    retention: timedelta = DEFAULT_RETENTION,
    *,
    dry_run: bool = False,
) -> FileCleanupResult:
    """
    Delete expired files from `directory`.

    Deletion is best-effort per file: a failed unlink is logged and recorded,
    and the remaining files are still attempted. A directory that cannot be
    listed yields a result holding only its DirectoryListError.

    Args:
        directory: Datatype directory to scan
        current_timestamp: Hour-aligned UTC timestamp of the running job
        retention: Retention window
        dry_run: Only report what would be deleted

    Returns:
        FileCleanupResult with deleted paths, skipped names and per-file errors
    """
    directory = Path(directory)
    logger.info(f"File cleanup started: {directory}")

    try:
        selection = find_expired_files(directory, current_timestamp, retention)
    except DirectoryListError as e:
        logger.error(str(e))
        return FileCleanupResult(errors=[e])
    result = FileCleanupResult(unparseable=selection.unparseable)

    for name in selection.expired:
        path = directory / name
        if dry_run:
            result.deleted.append(str(path))
            continue
        try:
            path.unlink()
        except OSError as e:
            error = FileDeleteError(path, e)
            logger.error(str(error))
            result.errors.append(error)
            continue
        logger.info(f"Deleted file: {path}")
        result.deleted.append(str(path))

    return result
