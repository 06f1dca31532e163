"""
Identifier helpers for the ingestion pipeline.

Thin wrappers around ``sanitizer`` that apply context-specific defaults
(the identifier length limit for the current Oracle version) and make call
sites more readable.

Usage:
    from csvload.utils.identifiers import to_column_descriptors, to_table_name

    cols  = to_column_descriptors(["First Name", "Age"], cfg)  # → first_name, age
    table = to_table_name("sales.contacts", cfg)               # → "SALES.CONTACTS"
"""

from __future__ import annotations

from csvload.configs.config import PipelineConfig
from csvload.models.models import ColumnDescriptor
from csvload.utils.sanitizer import normalize_column_name, quote_identifier, validate_table_name
from csvload.utils.validation import validate_unique_columns


def to_column_descriptors(headers: list[str], config: PipelineConfig) -> list[ColumnDescriptor]:
    """
    Normalize raw CSV headers into column descriptors, in header order.

    Raises:
        IdentifierError:      If a normalized name cannot be quoted safely.
        DuplicateColumnError: If two headers normalize to the same name.
    """
    columns = []
    for raw in headers:
        name = normalize_column_name(raw)
        quote_identifier(name, max_len=config.oracle_max_identifier_len)
        columns.append(ColumnDescriptor(source_key=raw, column_name=name))

    validate_unique_columns([c.column_name for c in columns])
    return columns


def to_table_name(raw: str, config: PipelineConfig) -> str:
    """
    Validate a raw destination name.

    Returns:
        Upper-cased, Oracle-safe table name (``TABLE`` or ``SCHEMA.TABLE``).

    Raises:
        IdentifierError: If ``raw`` is empty or not a plain identifier.
    """
    return validate_table_name(raw, max_len=config.oracle_max_identifier_len)
