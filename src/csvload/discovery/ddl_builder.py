"""
DDL generation for the materialization step.

All functions are **pure** — they accept data structures and return SQL
strings.  No database connection is required.  This makes them trivially
testable and reusable from dry-run mode.

Responsibilities:
  - ``build_drop_table``   — drop the destination if it exists
  - ``build_create_table`` — full CREATE TABLE statement

Oracle rules enforced here:
  - Every CSV column is ``VARCHAR2(4000 CHAR)``; no type inference.
  - The first column is an ``id`` identity primary key.
  - Column names are quoted identifiers; the table name is a validated
    plain identifier (see ``csvload.utils.sanitizer``).
  - Oracle has no ``DROP TABLE IF EXISTS`` before 23ai, so the drop is an
    anonymous PL/SQL block that ignores ORA-00942 (table does not exist)
    and re-raises anything else.
"""

from __future__ import annotations

from csvload.configs.exceptions import DDLError
from csvload.models.models import TableMeta

ORA_TABLE_NOT_FOUND: int = -942


def build_drop_table(table_name: str) -> str:
    """
    Generate an idempotent drop for ``table_name``.

    Args:
        table_name: Validated destination name (output of ``to_table_name``).

    Returns:
        An anonymous PL/SQL block.  ``PURGE`` skips the recycle bin, so the
        previous contents are permanently gone once it runs.
    """
    return (
        "BEGIN\n"
        f"    EXECUTE IMMEDIATE 'DROP TABLE {table_name} PURGE';\n"
        "EXCEPTION\n"
        "    WHEN OTHERS THEN\n"
        f"        IF SQLCODE != {ORA_TABLE_NOT_FOUND} THEN\n"
        "            RAISE;\n"
        "        END IF;\n"
        "END;"
    )


def build_create_table(meta: TableMeta) -> str:
    """
    Generate a ``CREATE TABLE`` statement for the destination.

    Example::

        CREATE TABLE CONTACTS (
            id NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            "first_name" VARCHAR2(4000 CHAR),
            "age" VARCHAR2(4000 CHAR)
        )

    Raises:
        DDLError: If ``meta.columns`` is empty.
    """
    if not meta.columns:
        raise DDLError(
            f"Cannot generate CREATE TABLE for {meta.table_name}: no columns defined."
        )

    cols_sql = ",\n".join(f"    {d}" for d in meta.column_definitions)
    return (
        f"CREATE TABLE {meta.table_name} (\n"
        f"{cols_sql}\n"
        f")"
    )
