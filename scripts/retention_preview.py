#!/usr/bin/env python3
"""
Retention preview script.

Shows which files in a datatype directory the archival job would delete,
without deleting anything. Names that do not follow the dataset filename
convention are listed separately; the job skips them too.

Usage:
    # Preview against the current hour
    uv run scripts/retention_preview.py /data/final/berlin/berlin_temperature

    # Preview as of a given instant, with a custom window
    uv run scripts/retention_preview.py /data/final/berlin/berlin_temperature \
        --now 2023-06-29T05:30:00Z --retention-hours 24

Run inside Docker:
    docker compose run dagster uv run scripts/retention_preview.py /data/final/berlin/berlin_temperature
"""

import argparse
import sys
from datetime import datetime, timedelta
from pathlib import Path

from dataset_archive.archive.errors import DirectoryListError
from dataset_archive.archive.filenames import current_hour
from dataset_archive.archive.retention import find_expired_files
from dataset_archive.storage.record_store import format_cutoff


def parse_now(value: str) -> datetime:
    """
    Parse an ISO 8601 instant; a trailing 'Z' means UTC.

    Raises:
        ValueError: If the value is not an ISO 8601 instant
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def preview(directory: Path, now: datetime, retention: timedelta) -> tuple[list[str], list[str]]:
    """
    Return (expired, unparseable) filenames for `directory`.

    Raises:
        FileNotFoundError: If the directory does not exist
        DirectoryListError: If the directory cannot be listed
    """
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")

    selection = find_expired_files(directory, current_hour(now), retention)
    return selection.expired, selection.unparseable


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Preview which dataset files the retention cleanup would delete.",
        epilog="Nothing is deleted; the database is not touched.",
    )
    parser.add_argument("directory", help="Datatype directory to scan")
    parser.add_argument(
        "--now",
        help="Reference instant in ISO 8601 (default: current time, UTC)",
    )
    parser.add_argument(
        "--retention-hours",
        type=int,
        default=49,
        help="Retention window in hours (default: 49)",
    )
    args = parser.parse_args(argv)

    if args.retention_hours <= 0:
        print(f"❌ Retention must be positive, got {args.retention_hours}", file=sys.stderr)
        return 1

    try:
        now = parse_now(args.now) if args.now else datetime.now().astimezone()
    except ValueError as e:
        print(f"❌ Invalid --now value: {e}", file=sys.stderr)
        return 1

    directory = Path(args.directory).resolve()
    retention = timedelta(hours=args.retention_hours)
    try:
        expired, unparseable = preview(directory, now, retention)
    except (FileNotFoundError, DirectoryListError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    hour = current_hour(now)
    print(f"📂 Scanning: {directory}")
    print(f"   Current hour: {hour.isoformat()}")
    print(f"   Cutoff:       {format_cutoff(hour - retention)} UTC")
    print()

    if expired:
        print(f"🗑️  {len(expired)} file(s) would be deleted:")
        for name in expired:
            print(f"  {name}")
    else:
        print("✅ Nothing to delete")

    if unparseable:
        print()
        print(f"⚠️  {len(unparseable)} file(s) skipped (name does not match the dataset convention):")
        for name in unparseable:
            print(f"  {name}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
