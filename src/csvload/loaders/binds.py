"""
Positional bind types for Oracle ``cursor.setinputsizes()``.

Every materialized column is text, so every bind position is
``oracledb.DB_TYPE_VARCHAR``.  Declaring it up front stops the driver from
guessing a type from the first row of each ``executemany`` chunk.
"""

from __future__ import annotations

import oracledb


def build_input_sizes(column_count: int) -> list[object]:
    """
    Build the positional argument list for ``cursor.setinputsizes()``.

    Raises:
        ValueError: If ``column_count`` is less than 1.
    """
    if column_count < 1:
        raise ValueError(f"column_count must be >= 1, got {column_count}")
    return [oracledb.DB_TYPE_VARCHAR] * column_count
