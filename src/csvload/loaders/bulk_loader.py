"""
Bulk Loader: CSV data rows → destination table, all or nothing.

Re-reads the CSV, accumulates every data row in memory, then inserts them
inside a single transaction.

Key behaviours:
  - Zero data rows → ``NoDataError`` before any connection is borrowed.
  - One connection, one transaction.  Rows go in strictly in file order via
    ``cursor.executemany()`` in chunks of ``config.batch_size``; each row's
    field count is checked before its chunk is sent.
  - ``connection.commit()`` once, after the last chunk.
  - Any failure (misaligned row, driver error) → ``connection.rollback()``;
    no partial rows survive.  Driver errors are re-raised as ``LoadError``
    chained to the original; everything else propagates unchanged.
  - The connection is released and the source file deleted on every exit
    path.  After a commit, failing to delete the file is itself an error;
    after a failure it is only logged so the original error surfaces.

States: not-started → accumulating → inserting → committed | rolled-back.

Usage::

    from csvload.loaders.bulk_loader import load

    result = load(csv_path, "CONTACTS", ["first_name", "age"], config=config)
    print(f"{result.rows_loaded} rows committed")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import oracledb

from csvload.configs.config import PipelineConfig
from csvload.configs.exceptions import IngestionError, LoadError, NoDataError
from csvload.discovery.csv_reader import CSVReader
from csvload.discovery.oracle_client import acquire
from csvload.loaders.binds import build_input_sizes
from csvload.loaders.error_logging import log_load_error
from csvload.models.models import TableMeta
from csvload.utils.files import remove_source_file
from csvload.utils.identifiers import to_table_name
from csvload.utils.validation import validate_row_alignment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result object
# ---------------------------------------------------------------------------

@dataclass
class LoadResult:
    """
    Summary of a committed load.

    Attributes:
        table_name:  Destination table.
        rows_loaded: Number of rows committed.
        batches:     Number of ``executemany`` round trips.
    """
    table_name: str
    rows_loaded: int = 0
    batches: int = 0


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def collect_rows(source_path: Path | str) -> list[list[str]]:
    """Decode every data row of the CSV, in file order."""
    with CSVReader(source_path) as source:
        return list(source.rows())


def load(
    source_path: Path | str,
    table_name: str,
    column_names: list[str],
    pool=None,
    config: PipelineConfig | None = None,
) -> LoadResult:
    """
    Insert every data row of ``source_path`` into ``table_name`` atomically.

    Args:
        source_path:  Path to the CSV file.  Deleted before this returns.
        table_name:   Destination table (as passed to ``materialize``).
        column_names: Normalized column names returned by ``materialize``.
        pool:         Connection pool.  Defaults to the process-wide pool.
        config:       Pipeline configuration (``batch_size``, ``error_dir``).

    Returns:
        ``LoadResult`` for the committed transaction.

    Raises:
        NoDataError:    The CSV has no data rows; no transaction was opened.
        AlignmentError: A row's field count differs from the column count;
                        the transaction was rolled back.
        LoadError:      The database rejected an insert or the commit; the
                        transaction was rolled back.
        SourceError:    The CSV could not be decoded.
        IngestionError: The rows were committed but the source file could
                        not be removed.
    """
    config = config or PipelineConfig()
    source_path = Path(source_path)

    try:
        result = _load(source_path, table_name, column_names, pool, config)
    except BaseException:
        _discard_source(source_path)
        raise

    remove_source_file(source_path)
    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load(
    source_path: Path,
    table_name: str,
    column_names: list[str],
    pool,
    config: PipelineConfig,
) -> LoadResult:
    meta = TableMeta.from_column_names(to_table_name(table_name, config), column_names)

    rows = collect_rows(source_path)
    if not rows:
        logger.warning("No data found in %s", source_path.name)
        raise NoDataError("No data found in CSV", table_name=meta.table_name)

    logger.info("Accumulated %d rows from %s", len(rows), source_path.name)

    with acquire(pool) as conn:
        result = _insert_all(conn, meta, rows, source_path, config)

    logger.info(
        "CSV data imported into %s: %d rows in %d batch(es)",
        meta.table_name, result.rows_loaded, result.batches,
    )
    return result


def _insert_all(
    conn,
    meta: TableMeta,
    rows: list[list[str]],
    source_path: Path,
    config: PipelineConfig,
) -> LoadResult:
    """Run the insert transaction.  Commits or rolls back; never leaves it open."""
    result = LoadResult(table_name=meta.table_name)
    expected = len(meta.columns)
    input_sizes = build_input_sizes(expected)

    cursor = conn.cursor()
    try:
        for start in range(0, len(rows), config.batch_size):
            chunk = rows[start:start + config.batch_size]
            for row_number, row in enumerate(chunk, start=start + 1):
                validate_row_alignment(row, expected, row_number, str(source_path))

            cursor.setinputsizes(*input_sizes)
            cursor.executemany(meta.insert_sql, chunk)
            result.batches += 1
            result.rows_loaded += len(chunk)

        conn.commit()
    except Exception as e:
        _rollback(conn, meta)
        _record_failure(e, source_path, meta, config)
        if isinstance(e, oracledb.Error):
            raise LoadError(
                f"Error inserting data into {meta.table_name}: {e}",
                table_name=meta.table_name,
            ) from e
        raise
    finally:
        cursor.close()

    return result


def _rollback(conn, meta: TableMeta) -> None:
    try:
        conn.rollback()
    except oracledb.Error as e:
        logger.error("Rollback of %s failed: %s", meta.table_name, e)
        return
    logger.error("Load into %s rolled back", meta.table_name)


def _record_failure(
    error: Exception,
    source_path: Path,
    meta: TableMeta,
    config: PipelineConfig,
) -> None:
    try:
        log_load_error(error, source_path, meta.table_name, config.error_dir)
    except OSError as log_err:
        logger.warning("Could not write load error log: %s", log_err)


def _discard_source(source_path: Path) -> None:
    try:
        remove_source_file(source_path)
    except IngestionError as e:
        logger.warning("Could not remove %s: %s", source_path.name, e)
