"""
Archive decision for an incoming dataset.

Only the snapshot for the present hour is archived. Late arrivals for past
hours are left alone so the archive never receives obsolete copies.
"""
from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import dagster as dg

from dataset_archive.archive.errors import ArchiveCopyError
from dataset_archive.archive.filenames import archive_filename
from dataset_archive.defs.models import DatasetFile, RetentionPolicy

logger = dg.get_dagster_logger(__name__)


@dataclass(frozen=True)
class ArchiveDecision:
    dataset: DatasetFile
    should_archive: bool
    archive_filename: str | None = None


def decide_archive(dataset: DatasetFile, current_timestamp: datetime) -> ArchiveDecision:
    """
    Decide whether `dataset` is the current hourly snapshot.

    Both timestamps must already be hour-aligned.
    """
    if dataset.timestamp != current_timestamp:
        return ArchiveDecision(dataset=dataset, should_archive=False)
    return ArchiveDecision(
        dataset=dataset,
        should_archive=True,
        archive_filename=archive_filename(dataset),
    )


def copy_to_archive(
    decision: ArchiveDecision,
    final_data_dir: Path,
    policy: RetentionPolicy,
) -> Path:
    """
    Copy the current snapshot from the source datatype directory into the archive.

    The archive directory is created on demand and an existing archive file of
    the same name is overwritten, so repeating the copy within one hour is safe.

    Args:
        decision: A positive archive decision
        final_data_dir: Root of the per-region dataset tree
        policy: Layout of source and archive directories

    Returns:
        Path of the archived file

    Raises:
        ValueError: If the decision is negative
        ArchiveCopyError: If the directory cannot be created or the copy fails
    """
    if not decision.should_archive or decision.archive_filename is None:
        raise ValueError(f"{decision.dataset.raw_name} is not due for archiving")

    archive_dir = policy.archive_dir(final_data_dir)
    source = policy.source_dir(final_data_dir, decision.dataset.region) / decision.archive_filename
    target = archive_dir / decision.archive_filename

    try:
        archive_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveCopyError(f"Could not create archive directory {archive_dir}: {e}") from e

    try:
        shutil.copyfile(source, target)
    except OSError as e:
        raise ArchiveCopyError(f"Could not copy {source} to {target}: {e}") from e

    logger.info(f"Archived {source.name} to {archive_dir}")
    return target
