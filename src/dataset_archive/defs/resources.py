"""
Dagster resources for the archival job.

This module provides:
1. ArchiveSettings: retention window and directory layout, read once at load time
2. PostgresRecordStore wiring: connection settings for record cleanup

CONFIGURATION:
All settings are resolved when the code location loads and handed to the
orchestrator as an explicit RetentionPolicy. Nothing in the archival core
reads the environment.

Environment variables:
    FINAL_DATA_DIR     - Root of the per-region dataset tree (default: /data/final)
    RETENTION_HOURS    - Retention window in hours (default: 49)
    POSTGRES_USER      - Database user (required)
    POSTGRES_PASSWORD  - Database password (required)
    POSTGRES_HOST      - Database host (default: postgres)
    POSTGRES_PORT      - Database port (default: 5432)
    POSTGRES_DB        - Database name (default: postgres)
    POSTGRES_SCHEMA    - Schema of the per-region tables (default: public)
"""
import os
from datetime import timedelta

import dagster as dg
from pydantic import field_validator

from dataset_archive.defs.models import DEFAULT_DATATYPES, RetentionPolicy
from dataset_archive.storage.postgres_record_store import PostgresRecordStore


class ArchiveSettings(dg.ConfigurableResource):
    """
    Static archival configuration shared by the op and the sensor.

    Attributes:
        final_data_dir: Root of the per-region dataset tree watched by the sensor
        retention_hours: Age after which files and rows are purged
        archive_dir_name: Archive directory name under final_data_dir
        source_datatype: Datatype directory the current snapshot is copied from
    """

    final_data_dir: str = "/data/final"
    retention_hours: int = 49
    archive_dir_name: str = "archive"
    source_datatype: str = "temperature"

    @field_validator("retention_hours")
    @classmethod
    def _positive_retention(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"retention_hours must be positive, got {value}")
        return value

    def to_policy(self) -> RetentionPolicy:
        return RetentionPolicy(
            retention=timedelta(hours=self.retention_hours),
            archive_dir_name=self.archive_dir_name,
            source_datatype=self.source_datatype,
            datatypes=DEFAULT_DATATYPES,
        )


def _postgres_dsn_from_env() -> str:
    user = os.environ["POSTGRES_USER"]
    password = os.environ["POSTGRES_PASSWORD"]
    host = os.environ.get("POSTGRES_HOST", "postgres")
    port = os.environ.get("POSTGRES_PORT", "5432")
    db_name = os.environ.get("POSTGRES_DB", "postgres")
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def build_resources() -> dict[str, dg.ConfigurableResource]:
    return {
        "settings": ArchiveSettings(
            final_data_dir=os.environ.get("FINAL_DATA_DIR", "/data/final"),
            retention_hours=int(os.environ.get("RETENTION_HOURS", "49")),
        ),
        "record_store": PostgresRecordStore(
            dsn=_postgres_dsn_from_env(),
            schema=os.environ.get("POSTGRES_SCHEMA", "public"),
        ),
    }
