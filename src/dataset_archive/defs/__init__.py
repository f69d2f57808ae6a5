from dataset_archive.defs.models import (
    DEFAULT_DATATYPES,
    ArchiveReport,
    DatasetFile,
    DatatypeSpec,
    RetentionPolicy,
    StageOutcome,
)

__all__ = [
    "DEFAULT_DATATYPES",
    "ArchiveReport",
    "DatasetFile",
    "DatatypeSpec",
    "RetentionPolicy",
    "StageOutcome",
]
