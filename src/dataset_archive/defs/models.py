from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from dataset_archive.archive.errors import ArchiveError

DEFAULT_RETENTION = timedelta(hours=49)


@dataclass(frozen=True)
class DatasetFile:
    """A parsed dataset filename. `timestamp` is UTC and hour-aligned."""

    region: str
    timestamp: datetime
    raw_name: str


@dataclass(frozen=True)
class DatatypeSpec:
    """
    One data category of a region.

    Rows live in table `<region><table_suffix>` and expire on `time_column`.
    Datatypes with `has_directory` also keep files under
    `<final_data_dir>/<region>/<region>_<name>/`.
    """

    name: str
    table_suffix: str
    time_column: str
    has_directory: bool = True

    def table_name(self, region: str) -> str:
        return f"{region}{self.table_suffix}"

    def directory(self, final_data_dir: Path, region: str) -> Path | None:
        if not self.has_directory:
            return None
        return Path(final_data_dir) / region / f"{region}_{self.name}"


DEFAULT_DATATYPES: tuple[DatatypeSpec, ...] = (
    DatatypeSpec(name="temperature", table_suffix="_temperature", time_column="time"),
    DatatypeSpec(name="reclassified", table_suffix="_reclassified", time_column="time"),
    DatatypeSpec(
        name="contourlines",
        table_suffix="_contourlines",
        time_column="timestamp",
        has_directory=False,
    ),
)


@dataclass(frozen=True)
class RetentionPolicy:
    """Static archival layout and the single retention window applied to files and rows."""

    retention: timedelta = DEFAULT_RETENTION
    archive_dir_name: str = "archive"
    source_datatype: str = "temperature"
    datatypes: tuple[DatatypeSpec, ...] = DEFAULT_DATATYPES

    def __post_init__(self) -> None:
        if self.retention <= timedelta(0):
            raise ValueError(f"retention must be positive, got {self.retention}")
        if not self.datatypes:
            raise ValueError("at least one datatype is required")

    def cutoff(self, current_timestamp: datetime) -> datetime:
        """Anything strictly older than this instant is expired."""
        return current_timestamp - self.retention

    def archive_dir(self, final_data_dir: Path) -> Path:
        return Path(final_data_dir) / self.archive_dir_name

    def source_dir(self, final_data_dir: Path, region: str) -> Path:
        return Path(final_data_dir) / region / f"{region}_{self.source_datatype}"


# Stage names, in execution order
STAGE_COPY = "copy"
STAGE_FILE_CLEANUP = "file_cleanup"
STAGE_RECORD_CLEANUP = "record_cleanup"


@dataclass
class StageOutcome:
    """
    Result of one stage of an archival job.

    Attributes:
        stage: One of copy, file_cleanup, record_cleanup
        datatype: Datatype name for cleanup stages, None for the copy stage
        skipped: Stage had nothing to do (no archive due, no directory)
        files_deleted: Paths removed (or selected, in dry-run mode)
        files_skipped: Names in the directory that did not parse
        rows_deleted: Rows removed by record cleanup
        errors: Recoverable errors raised during the stage
    """

    stage: str
    datatype: str | None = None
    skipped: bool = False
    files_deleted: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    rows_deleted: int = 0
    errors: list[ArchiveError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "datatype": self.datatype,
            "skipped": self.skipped,
            "files_deleted": list(self.files_deleted),
            "files_skipped": list(self.files_skipped),
            "rows_deleted": self.rows_deleted,
            "errors": [str(e) for e in self.errors],
        }


@dataclass
class ArchiveReport:
    """Outcome of one archival job that got past filename parsing."""

    region: str
    dataset_timestamp: datetime
    current_timestamp: datetime
    dry_run: bool = False
    archive_path: Path | None = None
    # Set instead of archive_path on a dry run
    planned_archive_path: Path | None = None
    stages: list[StageOutcome] = field(default_factory=list)

    @property
    def archived(self) -> bool:
        return self.archive_path is not None

    @property
    def errors(self) -> list[ArchiveError]:
        return [e for stage in self.stages for e in stage.errors]

    @property
    def partial_failures(self) -> int:
        """Number of stages that completed with recoverable errors."""
        return sum(1 for stage in self.stages if not stage.success)

    @property
    def status(self) -> str:
        # Recoverable failures never fail the job
        if self.partial_failures:
            return "success_with_partial_failures"
        return "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "dataset_timestamp": self.dataset_timestamp.isoformat(),
            "current_timestamp": self.current_timestamp.isoformat(),
            "dry_run": self.dry_run,
            "archived": self.archived,
            "archive_path": str(self.archive_path) if self.archive_path else None,
            "planned_archive_path": str(self.planned_archive_path) if self.planned_archive_path else None,
            "status": self.status,
            "partial_failures": self.partial_failures,
            "stages": [stage.to_dict() for stage in self.stages],
        }
