from abc import abstractmethod
from datetime import datetime

import dagster as dg

from dataset_archive.defs.models import DatatypeSpec

CUTOFF_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_cutoff(cutoff: datetime) -> str:
    """Second-precision cutoff as bound into the delete predicate, e.g. `2023-06-27 04:00:00`."""
    return cutoff.strftime(CUTOFF_FORMAT)


class RecordStore(dg.ConfigurableResource):
    @abstractmethod
    def purge_expired(self, region: str, datatype: DatatypeSpec, cutoff: datetime) -> int:
        """
        Delete rows of `<region><datatype.table_suffix>` older than `cutoff`.

        Rows whose time column equals the cutoff are kept.

        Args:
            region: Region identifier
            datatype: Datatype whose table and time column to use
            cutoff: Hour-aligned UTC instant

        Returns:
            Number of rows deleted

        Raises:
            DbConnectError: If no connection could be opened
            DbQueryError: If the delete statement failed
        """
        ...
