"""
csvload — CSV to Oracle table materialization CLI

Environment variables read (a .env file in the working directory is loaded
first, if present):
    DB_DSN        Oracle DSN string  (e.g. localhost:1521/XEPDB1)
    DB_USER       Oracle username
    DB_PASSWORD   Oracle password
    DB_POOL_MIN   Optional: connections opened at startup (default 1)
    DB_POOL_MAX   Optional: pool ceiling (default 4)
    ERROR_DIR     Optional: where the load error log is appended
    DRY_RUN       Optional: "true" makes ingest behave like dry-run
    BATCH_SIZE    Optional: rows per executemany round trip

Commands:
    ingest    Full pipeline — DROP/CREATE the table, load every row, commit.
              The source file is deleted afterwards.
    dry-run   Print the statements ingest would run. No DB, file untouched.
    validate  Check header, identifiers and row alignment. No DB.

Usage examples:
    csvload ingest   --source uploads/contacts.csv --table CONTACTS
    csvload dry-run  --source uploads/contacts.csv --table CONTACTS
    csvload validate --source uploads/contacts.csv --table sales.contacts

Exit codes:
    0  Success (or dry-run / validate passed)
    1  Pipeline failure — file rejected or load rolled back
    2  Configuration / argument error
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from csvload.configs.config import PipelineConfig
from csvload.configs.exceptions import IngestionError
from csvload.loaders.error_logging import LOG_FILENAME, count_errors_in_log
from csvload.pipeline import PipelineResult, handle_upload, preview, validate


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        level=level,
        stream=sys.stdout,
    )


# ---------------------------------------------------------------------------
# Config: env vars + optional CLI overrides
# ---------------------------------------------------------------------------

def _build_config(args: argparse.Namespace) -> PipelineConfig:
    """
    Priority order for each setting:
      1. CLI flag (--batch-size, --error-dir)
      2. Environment variable
      3. PipelineConfig default
    """
    kwargs: dict = {}

    if args.batch_size is not None:
        kwargs["batch_size"] = args.batch_size
    if args.error_dir:
        kwargs["error_dir"] = Path(args.error_dir)

    return PipelineConfig(**kwargs)


# ---------------------------------------------------------------------------
# Oracle pool: credentials come from env vars
# ---------------------------------------------------------------------------

def _start_pool():
    """
    Create the process-wide pool from DB_DSN / DB_USER / DB_PASSWORD.
    Exits 2 if any are missing.
    """
    from csvload.discovery.oracle_client import init_pool

    dsn      = os.environ.get("DB_DSN")
    user     = os.environ.get("DB_USER")
    password = os.environ.get("DB_PASSWORD")

    missing = [k for k, v in [("DB_DSN", dsn), ("DB_USER", user), ("DB_PASSWORD", password)] if not v]
    if missing:
        print(
            f"ERROR: Missing required environment variable(s): {', '.join(missing)}\n"
            f"Set them in the environment or in a .env file:\n"
            f"  DB_DSN='localhost:1521/XEPDB1'\n"
            f"  DB_USER='myuser'\n"
            f"  DB_PASSWORD='mypassword'",
            file=sys.stderr,
        )
        sys.exit(2)

    return init_pool(
        dsn=dsn,
        user=user,
        password=password,
        min_size=int(os.environ.get("DB_POOL_MIN", "1")),
        max_size=int(os.environ.get("DB_POOL_MAX", "4")),
    )


# ---------------------------------------------------------------------------
# Result printers
# ---------------------------------------------------------------------------

def _print_preview(result: PipelineResult) -> None:
    if result.error:
        print(f"✗ {result.source_path.name} — {result.error}", file=sys.stderr)
        return
    print("\n── Dry-run complete ──────────────────────────────────")
    print("Statements that would be executed:")
    for stmt in result.ddl_preview:
        print(stmt)
        print()


def _print_validation(result: PipelineResult) -> None:
    if result.success:
        print(
            f"✓ {result.source_path} — valid "
            f"({len(result.columns)} columns, {result.rows_checked} rows → {result.table_name})"
        )
    else:
        print(f"✗ {result.source_path} — {result.error}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def _cmd_ingest(args: argparse.Namespace) -> int:
    from csvload.discovery.oracle_client import close_pool

    config = _build_config(args)
    if config.dry_run:
        print("DRY_RUN is set: previewing instead of ingesting.")
        return _cmd_dry_run(args)

    try:
        _start_pool()
    except IngestionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    try:
        response = handle_upload(args.source, args.table, config=config)
    finally:
        close_pool()

    if response.ok:
        print(f"\n✓ SUCCESS: {response.message}")
        return 0
    print(f"\n✗ FAILED ({response.status}): {response.message}", file=sys.stderr)
    logged = count_errors_in_log(config.error_dir)
    if logged:
        print(
            f"  {logged} rolled-back load(s) recorded in {config.error_dir / LOG_FILENAME}",
            file=sys.stderr,
        )
    return 1


def _cmd_dry_run(args: argparse.Namespace) -> int:
    config = _build_config(args)
    result = preview(args.source, args.table, config=config)
    _print_preview(result)
    return 0 if result.success else 1


def _cmd_validate(args: argparse.Namespace) -> int:
    config = _build_config(args)
    result = validate(args.source, args.table, config=config)
    _print_validation(result)
    return 0 if result.success else 1


# ---------------------------------------------------------------------------
# Argument parser (importable for tests)
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csvload",
        description="Materialize a CSV file into an Oracle table and load its rows",
        epilog=(
            "Credentials (DB_DSN, DB_USER, DB_PASSWORD) are read from environment\n"
            "variables or a .env file."
        ),
    )
    parser.add_argument("--verbose", "-v", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    def _common_args(p):
        p.add_argument("--source", required=True)
        p.add_argument("--table",  required=True)
        p.add_argument("--batch-size", type=int, default=None, dest="batch_size")
        p.add_argument("--error-dir",  default=None, dest="error_dir")

    _common_args(sub.add_parser("ingest",   help="Create the table and load the file"))
    _common_args(sub.add_parser("dry-run",  help="Preview SQL without executing"))
    _common_args(sub.add_parser("validate", help="Validate CSV only (no Oracle)"))

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    handlers = {"ingest": _cmd_ingest, "dry-run": _cmd_dry_run, "validate": _cmd_validate}
    try:
        return handlers[args.command](args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
