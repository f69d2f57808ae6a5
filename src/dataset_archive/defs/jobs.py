from pathlib import Path

import dagster as dg

from dataset_archive.archive.errors import ParseError
from dataset_archive.archive.orchestrator import run_archive_job
from dataset_archive.defs.resources import ArchiveSettings
from dataset_archive.storage.record_store import RecordStore


class ArchiveJobConfig(dg.Config):
    """Configuration for one archival run."""
    input_path: str
    final_data_dir: str
    dry_run: bool = False


@dg.op
def archive_dataset(
    context: dg.OpExecutionContext,
    config: ArchiveJobConfig,
    settings: ArchiveSettings,
    record_store: RecordStore,
) -> dict:
    """
    Archive a newly produced dataset file and purge expired files and rows.

    Fails the run only when the filename carries no valid region/timestamp.
    Copy and cleanup failures are logged and counted in the output metadata,
    and the run still succeeds.
    """
    context.log.info(
        f"Starting archival: input={config.input_path}, final_data_dir={config.final_data_dir}, "
        f"dry_run={config.dry_run}"
    )

    try:
        report = run_archive_job(
            config.input_path,
            config.final_data_dir,
            record_store=record_store,
            policy=settings.to_policy(),
            dry_run=config.dry_run,
        )
    except ParseError as e:
        context.log.error(str(e))
        raise dg.Failure(
            description="Could not parse dataset timestamp.",
            metadata={
                "input_path": config.input_path,
                "filename": Path(config.input_path).name,
                "reason": e.reason,
            },
        ) from e

    if report.partial_failures:
        context.log.warning(
            f"Archival completed with {report.partial_failures} failed stage(s): "
            + "; ".join(str(e) for e in report.errors)
        )

    context.add_output_metadata(
        {
            "region": report.region,
            "dataset_timestamp": report.dataset_timestamp.isoformat(),
            "current_timestamp": report.current_timestamp.isoformat(),
            "archived": report.archived,
            "files_deleted": sum(len(s.files_deleted) for s in report.stages),
            "rows_deleted": sum(s.rows_deleted for s in report.stages),
            "partial_failures": report.partial_failures,
            "status": report.status,
        }
    )
    return report.to_dict()


@dg.job(tags={"pipeline": "archive"})
def archive_dataset_job():
    archive_dataset()
