import dagster as dg

from dataset_archive.defs.jobs import archive_dataset_job
from dataset_archive.defs.resources import build_resources
from dataset_archive.defs.sensors import new_dataset_sensor


@dg.definitions
def defs():
    return dg.Definitions(
        jobs=[archive_dataset_job],
        sensors=[new_dataset_sensor],
        resources=build_resources(),
    )
