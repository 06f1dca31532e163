"""
Schema Materializer: header row → destination table.

Reads only the header record of the CSV, derives the ordered column-name
list, and replaces the destination table with a fresh one matching it.

After this module runs:
  - Any previous table of the same name is gone, contents included.
  - The destination exists with ``id`` identity primary key followed by one
    ``VARCHAR2(4000 CHAR)`` column per header, in header order.
  - The returned column-name list is the only thing the Bulk Loader needs
    to build its INSERT.

The DROP and the CREATE are two separate statements.  Oracle DDL commits
implicitly, so they cannot share a transaction: if the CREATE fails after
the DROP succeeded, the destination is left absent.

No locking is done.  Two materializers running against the same name at
the same time interleave their DROP/CREATE freely; when both DROPs land
before either CREATE, the second CREATE fails with ORA-00955.
"""

from __future__ import annotations

import logging
from pathlib import Path

import oracledb

from csvload.configs.config import PipelineConfig
from csvload.configs.exceptions import DDLError
from csvload.discovery.csv_reader import CSVReader
from csvload.discovery.ddl_builder import build_create_table, build_drop_table
from csvload.discovery.oracle_client import acquire
from csvload.models.models import TableMeta
from csvload.utils.identifiers import to_column_descriptors, to_table_name
from csvload.utils.validation import validate_headers_not_empty

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def read_table_meta(
    source_path: Path | str,
    table_name: str,
    config: PipelineConfig,
) -> TableMeta:
    """
    Build the ``TableMeta`` for a CSV without touching the database.

    Only the header record is read.

    Raises:
        SourceError:          If the file cannot be read or a header is empty.
        IdentifierError:      If the destination or a column name is unsafe.
        DuplicateColumnError: If two headers normalize to the same name.
    """
    safe_table = to_table_name(table_name, config)

    with CSVReader(source_path) as source:
        headers = source.headers()

    validate_headers_not_empty(headers, source_path=str(source_path))
    return TableMeta(
        table_name=safe_table,
        columns=to_column_descriptors(headers, config),
    )


def ddl_statements(meta: TableMeta) -> list[str]:
    """The two statements materialization executes, in order."""
    return [build_drop_table(meta.table_name), build_create_table(meta)]


def materialize(
    source_path: Path | str,
    table_name: str,
    pool=None,
    config: PipelineConfig | None = None,
) -> list[str]:
    """
    Drop and recreate ``table_name`` from the CSV's header row.

    Args:
        source_path: Path to the CSV file.
        table_name:  Raw destination name (validated here).
        pool:        Connection pool.  Defaults to the process-wide pool.
        config:      Pipeline configuration.

    Returns:
        Normalized column names in header order.

    Raises:
        SchemaError:    Identifier, duplicate-column, or DDL failure.
        SourceError:    The CSV header cannot be read.
        IngestionError: No connection could be acquired.
    """
    config = config or PipelineConfig()
    meta = read_table_meta(source_path, table_name, config)

    with acquire(pool) as conn:
        cursor = conn.cursor()
        try:
            for sql in ddl_statements(meta):
                _execute_ddl(cursor, sql)
        finally:
            cursor.close()

    logger.info(
        "Table %s created with columns: %s",
        meta.table_name, ", ".join(meta.column_names),
    )
    return meta.column_names


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _execute_ddl(cursor, sql: str) -> None:
    """Execute one DDL statement, wrapping driver errors in ``DDLError``."""
    try:
        cursor.execute(sql)
    except oracledb.Error as e:
        raise DDLError(f"DDL failed: {e}", ddl=sql) from e
