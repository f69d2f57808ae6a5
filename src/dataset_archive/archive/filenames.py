"""
Filename grammar for hourly dataset files.

Every file produced for a region follows:

    <region>_<YYYYMMDD>T<HHmm>Z<suffix>

e.g. `berlin_20230629T0530Z.tif`. The region is everything before the first
underscore. Timestamps are UTC and always truncated to the top of the hour,
so `berlin_20230629T0530Z.tif` and `berlin_20230629T0500Z.tif` describe the
same hourly snapshot.
"""
from __future__ import annotations

from datetime import datetime, timezone

from dataset_archive.archive.errors import ParseError
from dataset_archive.defs.models import DatasetFile

_DIGITS = frozenset("0123456789")

# 8 date digits + "T" + 4 time digits + "Z"
_STAMP_LENGTH = 14

ARCHIVE_STAMP_FORMAT = "%Y%m%dT%H%M"
HOUR_STAMP_FORMAT = "%Y%m%dT%H"


def _is_digits(value: str, length: int) -> bool:
    return len(value) == length and all(c in _DIGITS for c in value)


def parse_dataset_filename(name: str) -> DatasetFile:
    """
    Parse a dataset filename into region and hour-aligned UTC timestamp.

    Args:
        name: Bare filename (no directory part)

    Returns:
        DatasetFile with the timestamp truncated to the hour

    Raises:
        ParseError: If the name does not follow the grammar or the embedded
            date/time is not a valid calendar instant
    """
    region, sep, rest = name.partition("_")
    if not sep:
        raise ParseError(name, "missing '_' separator after region")
    if not region:
        raise ParseError(name, "empty region")

    stamp = rest[:_STAMP_LENGTH]
    date_part, t_marker, time_part, z_marker = stamp[:8], stamp[8:9], stamp[9:13], stamp[13:14]

    if not _is_digits(date_part, 8):
        raise ParseError(name, "expected 8-digit date after region")
    if t_marker != "T":
        raise ParseError(name, "expected 'T' between date and time")
    if not _is_digits(time_part, 4):
        raise ParseError(name, "expected 4-digit time after 'T'")
    if z_marker != "Z":
        raise ParseError(name, "expected 'Z' after time")

    try:
        timestamp = datetime(
            int(date_part[:4]),
            int(date_part[4:6]),
            int(date_part[6:8]),
            int(time_part[:2]),
            int(time_part[2:]),
            tzinfo=timezone.utc,
        )
    except ValueError as e:
        raise ParseError(name, f"invalid date/time {date_part}T{time_part}: {e}") from e

    return DatasetFile(
        region=region,
        timestamp=truncate_to_hour(timestamp),
        raw_name=name,
    )


def truncate_to_hour(value: datetime) -> datetime:
    """Truncate to the start of the hour in UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)


def current_hour(now: datetime | None = None) -> datetime:
    """Hour-aligned UTC timestamp for `now` (defaults to the wall clock)."""
    return truncate_to_hour(now if now is not None else datetime.now(timezone.utc))


def archive_filename(dataset: DatasetFile) -> str:
    """Canonical archive name, e.g. `berlin_20230629T0500Z.tif`."""
    return f"{dataset.region}_{dataset.timestamp.strftime(ARCHIVE_STAMP_FORMAT)}Z.tif"


def hour_stamp(timestamp: datetime) -> str:
    """Hour-precision stamp (`YYYYMMDDTHH`) used to match files of the same hour."""
    return timestamp.strftime(HOUR_STAMP_FORMAT)
