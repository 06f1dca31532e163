"""
Pipeline orchestrator for csvload.

Wires the two steps in order for a single uploaded file:

  1. Materialize → read header, DROP + CREATE the destination table
  2. Load        → read every data row, insert all of them in one transaction

``handle_upload`` is the ingress boundary: it validates the request, runs
the pipeline, and turns the outcome into an ``UploadResponse``.  The CLI
and any transport layer in front of it call this and nothing else.

Cleanup policy:
  - The Bulk Loader deletes the source file on every one of its exit paths.
  - If materialization fails the loader never runs, so ``run`` deletes the
    source file itself before re-raising.
  - A request rejected at validation has no side effects; the caller still
    owns its file.

No per-destination locking is done: two uploads naming the same table at
the same time race.  Callers must serialize same-name uploads themselves.

Offline modes (no database):
  - ``preview``  → the DROP / CREATE / INSERT statements that would run.
  - ``validate`` → header, identifier and row-alignment checks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from csvload.configs.config import PipelineConfig
from csvload.configs.exceptions import (
    IngestionError,
    NoDataError,
    UploadValidationError,
)
from csvload.discovery.csv_reader import CSVReader
from csvload.discovery.materializer import ddl_statements, materialize, read_table_meta
from csvload.loaders.bulk_loader import LoadResult, load
from csvload.models.models import UploadRequest
from csvload.utils.files import remove_source_file
from csvload.utils.validation import validate_row_alignment

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "CSV imported successfully"


# ---------------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------------

@dataclass
class PipelineResult:
    """
    Summary of a single file's pipeline run.

    Attributes:
        source_path:  Path of the CSV that was processed.
        table_name:   Destination table (validated form, once known).
        columns:      Normalized column names, once the header was read.
        dry_run:      True if this was a preview (no DB writes).
        load:         ``LoadResult`` from the Bulk Loader, or ``None``.
        ddl_preview:  Statements that would be executed (preview only).
        rows_checked: Data rows inspected (validate only).
        error:        Exception that stopped an offline run, if any.
    """
    source_path: Path
    table_name: str | None = None
    columns: list[str] = field(default_factory=list)
    dry_run: bool = False
    load: LoadResult | None = None
    ddl_preview: list[str] = field(default_factory=list)
    rows_checked: int = 0
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class UploadResponse:
    """
    Outcome of ``handle_upload``.

    ``status`` follows HTTP conventions: 200 success, 400 rejected request,
    500 pipeline failure.
    """
    ok: bool
    status: int
    message: str


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def run(
    source_path: Path | str,
    table_name: str,
    pool=None,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """
    Materialize then load a single CSV file.

    Args:
        source_path: Path to the CSV file.  Deleted before this returns.
        table_name:  Raw destination name.
        pool:        Connection pool.  Defaults to the process-wide pool.
        config:      Pipeline configuration.

    Returns:
        ``PipelineResult`` for the committed load.

    Raises:
        IngestionError: Any failure in either step, unchanged.
    """
    config = config or PipelineConfig()
    source_path = Path(source_path)
    result = PipelineResult(source_path=source_path)

    try:
        columns = materialize(source_path, table_name, pool=pool, config=config)
    except Exception:
        _discard_source(source_path)
        raise

    result.columns = columns
    result.load = load(source_path, table_name, columns, pool=pool, config=config)
    result.table_name = result.load.table_name
    return result


def handle_upload(
    source_path: Path | str | None,
    table_name: str | None,
    pool=None,
    config: PipelineConfig | None = None,
) -> UploadResponse:
    """
    Ingress boundary: validate the request, run the pipeline, report.

    Never raises for pipeline failures; they come back as a 500 response
    carrying the underlying error message.
    """
    try:
        request = _validate_request(source_path, table_name)
    except UploadValidationError as e:
        logger.warning("Upload rejected: %s", e)
        return UploadResponse(ok=False, status=400, message=str(e))

    logger.info("Upload received: %s → %s", request.source_path.name, request.table_name)

    try:
        result = run(request.source_path, request.table_name, pool=pool, config=config)
    except IngestionError as e:
        logger.error("Upload into %s failed: %s", request.table_name, e)
        return UploadResponse(ok=False, status=500, message=str(e))
    except Exception as e:
        logger.exception("Unexpected error importing %s", request.source_path.name)
        return UploadResponse(ok=False, status=500, message=str(e))

    logger.info(
        "Upload into %s complete: %d rows", result.table_name, result.load.rows_loaded
    )
    return UploadResponse(ok=True, status=200, message=SUCCESS_MESSAGE)


def preview(
    source_path: Path | str,
    table_name: str,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """
    Build the statements ``run`` would execute, without touching Oracle.

    The source file is left in place.  Failures are recorded on the result.
    """
    config = config or PipelineConfig()
    source_path = Path(source_path)
    result = PipelineResult(source_path=source_path, dry_run=True)

    try:
        meta = read_table_meta(source_path, table_name, config)
    except IngestionError as e:
        result.error = e
        return result

    result.table_name = meta.table_name
    result.columns = meta.column_names
    result.ddl_preview = ddl_statements(meta) + [meta.insert_sql]
    logger.info("Dry-run: skipping DB phases.")
    return result


def validate(
    source_path: Path | str,
    table_name: str,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """
    Check a CSV the way the pipeline would, without touching Oracle.

    Covers the destination name, header normalization, duplicate columns,
    row alignment and the presence of at least one data row.  The source
    file is left in place.
    """
    config = config or PipelineConfig()
    source_path = Path(source_path)
    result = PipelineResult(source_path=source_path, dry_run=True)

    try:
        meta = read_table_meta(source_path, table_name, config)
        result.table_name = meta.table_name
        result.columns = meta.column_names

        expected = len(meta.columns)
        with CSVReader(source_path) as source:
            for row_number, row in enumerate(source.rows(), start=1):
                validate_row_alignment(row, expected, row_number, str(source_path))
                result.rows_checked = row_number

        if result.rows_checked == 0:
            raise NoDataError("No data found in CSV", table_name=meta.table_name)
    except IngestionError as e:
        result.error = e

    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _validate_request(
    source_path: Path | str | None,
    table_name: str | None,
) -> UploadRequest:
    if not source_path or not Path(source_path).is_file():
        raise UploadValidationError("No file uploaded")
    if not table_name or not table_name.strip():
        raise UploadValidationError("Table name is required")
    return UploadRequest(source_path=Path(source_path), table_name=table_name)


def _discard_source(source_path: Path) -> None:
    try:
        remove_source_file(source_path)
    except IngestionError as e:
        logger.warning("Could not remove %s: %s", source_path.name, e)
