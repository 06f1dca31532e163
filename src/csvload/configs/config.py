"""
Pipeline configuration.

All tuneable constants live here. Import from this module everywhere —
never hardcode batch sizes or Oracle limits inline.

Usage:
    from csvload.configs.config import PipelineConfig
    cfg = PipelineConfig()          # defaults
    cfg = PipelineConfig(batch_size=500)

Environment overrides (optional) can be loaded via .env / os.environ before
constructing the config object; this module does not load .env itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path



# Oracle hard limits (do not change unless Oracle version changes)
ORACLE_MAX_VARCHAR2_CHAR: int = 4000
"""Hard ceiling for VARCHAR2 with CHAR length semantics."""

ORACLE_MAX_IDENTIFIER_LEN_LEGACY: int = 30
"""Max identifier length for Oracle < 12.2 (pre-long-identifiers)."""

ORACLE_MAX_IDENTIFIER_LEN_EXTENDED: int = 128
"""Max identifier length for Oracle >= 12.2 with COMPATIBLE >= 12.2."""

TEXT_COLUMN_TYPE: str = f"VARCHAR2({ORACLE_MAX_VARCHAR2_CHAR} CHAR)"
"""Column type used for every materialized CSV column."""

IDENTITY_COLUMN: str = "id"
"""Surrogate key prepended to every materialized table."""


@dataclass(slots=True)
class PipelineConfig:
    """
    Runtime configuration for the ingestion pipeline.

    Attributes:
        batch_size: Number of rows per executemany call inside the load
            transaction.  The whole load is still one transaction; this only
            bounds the size of each round trip.
        oracle_max_identifier_len: Set to 30 for legacy Oracle, 128 for extended.
            Destination and column names longer than this are rejected.
        error_dir: Where the load error log is appended.
        dry_run: If True, generate DDL and SQL but make no DB calls and delete no files.
    """

    batch_size: int = field(
        default_factory=lambda: int(os.environ.get("BATCH_SIZE", "1000"))
    )
    oracle_max_identifier_len: int = field(
        default_factory=lambda: int(
            os.environ.get("ORACLE_MAX_IDENTIFIER_LEN", str(ORACLE_MAX_IDENTIFIER_LEN_EXTENDED))
        )
    )
    error_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("ERROR_DIR", "data/error"))
    )
    dry_run: bool = field(
        default_factory=lambda: os.environ.get("DRY_RUN", "false").lower() == "true"
    )

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.oracle_max_identifier_len < 1:
            raise ValueError(
                f"oracle_max_identifier_len must be >= 1, got {self.oracle_max_identifier_len}"
            )
