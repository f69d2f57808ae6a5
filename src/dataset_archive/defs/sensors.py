"""
Sensor that starts an archival run for every newly produced dataset file.

Watches `<final_data_dir>/<region>/<region>_<source_datatype>/*.tif` and
requests one run per file whose modification time is not older than the
cursor. Files sharing the cursor mtime are listed again on the next
evaluation, so a file written within the same timestamp tick is not missed.
The filename is the run key, so Dagster drops repeats of a file already
dispatched.
"""
from pathlib import Path

import dagster as dg

from dataset_archive.defs.jobs import archive_dataset_job
from dataset_archive.defs.resources import ArchiveSettings


def _new_dataset_files(root: Path, source_datatype: str, since: float) -> list[tuple[float, Path]]:
    pattern = f"*/*_{source_datatype}/*.tif"
    found = []
    for path in root.glob(pattern):
        if not path.is_file():
            continue
        mtime = path.stat().st_mtime
        if mtime >= since:
            found.append((mtime, path))
    return sorted(found)


@dg.sensor(job=archive_dataset_job, minimum_interval_seconds=60)
def new_dataset_sensor(context: dg.SensorEvaluationContext, settings: ArchiveSettings) -> dg.SensorResult:
    """
    Request an archival run for each new snapshot in the source datatype directories.

    Args:
        context: Dagster sensor evaluation context; the cursor holds the newest mtime seen
        settings: Archival settings with the dataset root and source datatype

    Returns:
        SensorResult with one RunRequest per new file and the advanced cursor
    """
    root = Path(settings.final_data_dir)
    since = float(context.cursor) if context.cursor else 0.0

    if not root.is_dir():
        context.log.warning(f"Dataset root {root} does not exist")
        return dg.SensorResult(skip_reason=f"Dataset root {root} does not exist")

    new_files = _new_dataset_files(root, settings.source_datatype, since)
    if not new_files:
        return dg.SensorResult(skip_reason="No new dataset files")

    run_requests = [
        dg.RunRequest(
            run_key=path.name,
            run_config={
                "ops": {
                    "archive_dataset": {
                        "config": {
                            "input_path": str(path),
                            "final_data_dir": str(root),
                        }
                    }
                }
            },
            tags={
                "source": "sensor",
                "pipeline": "archive",
                "region": path.parent.parent.name,
            },
        )
        for _, path in new_files
    ]
    context.log.info(f"Requesting archival for {len(run_requests)} new file(s)")
    return dg.SensorResult(run_requests=run_requests, cursor=str(new_files[-1][0]))
