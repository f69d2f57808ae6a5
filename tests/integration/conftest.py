"""
Integration test infrastructure fixtures.

Loads .env.test before any imports so all resources pick up test config.
Auto-marks tests in this directory as 'integration'. They are deselected by
default; run them with `pytest -m integration` against a running Postgres.
"""
import os
from pathlib import Path

import psycopg
import pytest
from dotenv import load_dotenv
from psycopg import sql

# Load test env vars BEFORE any resource imports
load_dotenv(Path(__file__).parent.parent.parent / ".env.test", override=True)

from dataset_archive.defs.resources import _postgres_dsn_from_env
from dataset_archive.storage.postgres_record_store import PostgresRecordStore

REGION_TABLES = {
    "berlin_temperature": "time",
    "berlin_reclassified": "time",
    "berlin_contourlines": "timestamp",
}


def pytest_collection_modifyitems(config, items):
    """Auto-mark all tests in this directory as integration."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# ---------------------------------------------------------------------------
# Session-scoped infrastructure fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def pg_connection():
    """Create test schema and per-region tables in Postgres."""
    conn = psycopg.connect(_postgres_dsn_from_env())
    schema = os.environ["POSTGRES_SCHEMA"]
    conn.execute(sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema)))
    for table, column in REGION_TABLES.items():
        conn.execute(
            sql.SQL("CREATE TABLE IF NOT EXISTS {table} (id SERIAL PRIMARY KEY, {column} TIMESTAMP NOT NULL)").format(
                table=sql.Identifier(schema, table),
                column=sql.Identifier(column),
            )
        )
    conn.commit()
    yield conn
    conn.close()


# ---------------------------------------------------------------------------
# Per-test cleanup fixtures (autouse)
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_pg(pg_connection):
    """Truncate region tables before each test."""
    schema = os.environ["POSTGRES_SCHEMA"]
    tables = sql.SQL(", ").join(sql.Identifier(schema, table) for table in REGION_TABLES)
    pg_connection.execute(sql.SQL("TRUNCATE {}").format(tables))
    pg_connection.commit()
    yield


# ---------------------------------------------------------------------------
# Resource fixtures (env-driven, same pattern as defs/resources.py)
# ---------------------------------------------------------------------------

@pytest.fixture
def record_store():
    return PostgresRecordStore(
        dsn=_postgres_dsn_from_env(),
        schema=os.environ["POSTGRES_SCHEMA"],
    )
