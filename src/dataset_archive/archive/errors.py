"""
Exception hierarchy for the archival job.

Only ParseError aborts a job. Every other error is recoverable: the
orchestrator logs it, records it on the stage outcome and moves on.
"""
from __future__ import annotations


class ArchiveError(Exception):
    """Base class for all archival job errors."""


class ParseError(ArchiveError, ValueError):
    """Filename does not follow `<region>_<YYYYMMDD>T<HHmm>Z<suffix>`."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not parse dataset timestamp from '{filename}': {reason}")


class ArchiveCopyError(ArchiveError):
    """Archive directory could not be created or the snapshot could not be copied."""


class FileDeleteError(ArchiveError):
    """A single expired file could not be removed."""

    def __init__(self, path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not delete {path}: {cause}")


class DbConnectError(ArchiveError):
    """Could not open a database connection for record cleanup."""


class DbQueryError(ArchiveError):
    """The record cleanup statement failed."""


class DirectoryListError(ArchiveError):
    """A datatype directory exists but could not be listed."""

    def __init__(self, path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not list {path}: {cause}")
