"""
Archival and retention core.

- filenames: filename grammar and hour alignment
- decision: whether a dataset is the current hourly snapshot, and the archive copy
- retention: expired file selection and deletion
- orchestrator: one archival job end to end
"""
