"""
One archival job end to end.

Stages run sequentially in a fixed order so logs and partial failures are
reproducible:

    parse -> decide -> copy (optional) -> per datatype: files, records

A filename that does not parse aborts the job before anything touches the
filesystem or the database. Every later failure is recoverable: it is logged,
recorded on its StageOutcome, and the next stage still runs.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path

import dagster as dg

from dataset_archive.archive.decision import copy_to_archive, decide_archive
from dataset_archive.archive.errors import ArchiveCopyError, DbConnectError, DbQueryError
from dataset_archive.archive.filenames import current_hour, parse_dataset_filename
from dataset_archive.archive.retention import purge_expired_files
from dataset_archive.defs.models import (
    STAGE_COPY,
    STAGE_FILE_CLEANUP,
    STAGE_RECORD_CLEANUP,
    ArchiveReport,
    DatasetFile,
    DatatypeSpec,
    RetentionPolicy,
    StageOutcome,
)
from dataset_archive.storage.record_store import RecordStore, format_cutoff

logger = dg.get_dagster_logger(__name__)


def run_archive_job(
    input_path: str | Path,
    final_data_dir: str | Path,
    *,
    record_store: RecordStore,
    policy: RetentionPolicy | None = None,
    now: datetime | None = None,
    dry_run: bool = False,
) -> ArchiveReport:
    """
    Archive the current hourly snapshot and purge expired files and rows.

    Args:
        input_path: Path of the newly produced dataset file
        final_data_dir: Root of the per-region dataset tree
        record_store: Store used to purge expired rows
        policy: Retention window and directory layout (defaults to RetentionPolicy())
        now: Clock reading for the job; the wall clock when omitted
        dry_run: Select files and skip all writes (no copy, no deletes)

    Returns:
        ArchiveReport with one StageOutcome per executed stage

    Raises:
        ParseError: If the input filename does not carry a valid region and timestamp
    """
    policy = policy or RetentionPolicy()
    final_data_dir = Path(final_data_dir)

    dataset = parse_dataset_filename(Path(input_path).name)
    # Computed once so every comparison in this job uses the same hour
    current_timestamp = current_hour(now)

    report = ArchiveReport(
        region=dataset.region,
        dataset_timestamp=dataset.timestamp,
        current_timestamp=current_timestamp,
        dry_run=dry_run,
    )

    report.stages.append(_archive_stage(report, dataset, current_timestamp, final_data_dir, policy))

    cutoff = policy.cutoff(current_timestamp)
    for datatype in policy.datatypes:
        if datatype.has_directory:
            report.stages.append(
                _file_cleanup_stage(datatype, dataset.region, final_data_dir, current_timestamp, policy, dry_run)
            )
        report.stages.append(_record_cleanup_stage(datatype, dataset.region, cutoff, record_store, dry_run))

    if report.partial_failures:
        logger.warning(
            f"Archiving finished for {dataset.raw_name} with {report.partial_failures} failed stage(s)"
        )
    else:
        logger.info(f"Archiving finished for {dataset.raw_name}")
    return report


def _archive_stage(
    report: ArchiveReport,
    dataset: DatasetFile,
    current_timestamp: datetime,
    final_data_dir: Path,
    policy: RetentionPolicy,
) -> StageOutcome:
    outcome = StageOutcome(stage=STAGE_COPY)
    decision = decide_archive(dataset, current_timestamp)
    if not decision.should_archive:
        logger.info(
            f"Not archiving {dataset.raw_name}: dataset hour {dataset.timestamp.isoformat()} "
            f"is not the current hour {current_timestamp.isoformat()}"
        )
        outcome.skipped = True
        return outcome
    if report.dry_run:
        report.planned_archive_path = policy.archive_dir(final_data_dir) / decision.archive_filename
        return outcome

    try:
        report.archive_path = copy_to_archive(decision, final_data_dir, policy)
    except ArchiveCopyError as e:
        logger.error(f"Could not copy dataset with timestamp {dataset.timestamp.isoformat()}: {e}")
        outcome.errors.append(e)
    return outcome


def _file_cleanup_stage(
    datatype: DatatypeSpec,
    region: str,
    final_data_dir: Path,
    current_timestamp: datetime,
    policy: RetentionPolicy,
    dry_run: bool,
) -> StageOutcome:
    outcome = StageOutcome(stage=STAGE_FILE_CLEANUP, datatype=datatype.name)
    directory = datatype.directory(final_data_dir, region)
    if directory is None or not directory.is_dir():
        logger.info(f"No directory for {region}_{datatype.name}, skipping file cleanup")
        outcome.skipped = True
        return outcome

    result = purge_expired_files(directory, current_timestamp, policy.retention, dry_run=dry_run)
    outcome.files_deleted = result.deleted
    outcome.files_skipped = result.unparseable
    outcome.errors.extend(result.errors)
    return outcome


def _record_cleanup_stage(
    datatype: DatatypeSpec,
    region: str,
    cutoff: datetime,
    record_store: RecordStore,
    dry_run: bool,
) -> StageOutcome:
    outcome = StageOutcome(stage=STAGE_RECORD_CLEANUP, datatype=datatype.name)
    if dry_run:
        logger.info(
            f"Dry run: would delete rows of {datatype.table_name(region)} "
            f"with {datatype.time_column} < {format_cutoff(cutoff)}"
        )
        outcome.skipped = True
        return outcome

    try:
        outcome.rows_deleted = record_store.purge_expired(region, datatype, cutoff)
    except (DbConnectError, DbQueryError) as e:
        logger.error(f"Database cleanup failed for {datatype.table_name(region)}: {e}")
        outcome.errors.append(e)
    return outcome
