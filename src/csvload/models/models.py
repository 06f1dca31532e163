"""
Core data models for the ingestion pipeline.

UploadRequest    — one file waiting to be materialized and loaded.
ColumnDescriptor — a single CSV header and the column name derived from it.
TableMeta        — the destination table; owns the cached insert SQL.

Positional bind strategy
------------------------
All DML uses Oracle positional binds:

    INSERT INTO CONTACTS ("first_name", "age") VALUES (:1, :2)

Each CSV row is bound as a plain list of strings in header order, so the
order of ``TableMeta.columns`` is the single source of truth for which
value lands in which column.  Do not mutate ``columns`` after reading
``insert_sql``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from csvload.configs.config import IDENTITY_COLUMN, TEXT_COLUMN_TYPE
from csvload.utils.sanitizer import quote_identifier


@dataclass(frozen=True)
class UploadRequest:
    """
    A file that finished arriving at the boundary.

    Attributes:
        source_path: Temporary file holding the uploaded CSV.  Deleted once
                     the Bulk Loader completes.
        table_name:  Caller-supplied destination table name (unsanitized).
    """

    source_path: Path
    table_name: str


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """
    A CSV header and its normalized column name.

    Attributes:
        source_key:  Header text as read from the CSV (e.g. ``"First Name"``).
        column_name: Normalized column name (e.g. ``"first_name"``).
    """

    source_key: str
    column_name: str

    @property
    def quoted_name(self) -> str:
        """Column name as a quoted Oracle identifier, e.g. ``"first_name"``."""
        return quote_identifier(self.column_name)


@dataclass
class TableMeta:
    """
    Metadata for the destination table.

    Attributes:
        table_name: Validated destination table name (optionally schema-qualified).
        columns:    ``ColumnDescriptor`` objects in header order.

    Notes:
        ``insert_sql`` is cached after first access.
    """

    table_name: str
    columns: list[ColumnDescriptor] = field(default_factory=list)

    # Internal cache, not part of the public interface.
    _insert_sql: str | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def column_names(self) -> list[str]:
        """Normalized column names in header order."""
        return [c.column_name for c in self.columns]

    @property
    def column_definitions(self) -> list[str]:
        """
        Column DDL fragments: identity column first, then one text column
        per header, in header order.
        """
        defs = [f"{IDENTITY_COLUMN} NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY"]
        defs.extend(f"{c.quoted_name} {TEXT_COLUMN_TYPE}" for c in self.columns)
        return defs

    @property
    def insert_sql(self) -> str:
        """
        Positional-bind INSERT statement for this table.

        Returns:
            A SQL string of the form::

                INSERT INTO TABLE ("col_a", "col_b")
                VALUES (:1, :2)

        Raises:
            ValueError: If ``columns`` is empty.
        """
        if self._insert_sql is not None:
            return self._insert_sql

        if not self.columns:
            raise ValueError(
                f"Cannot generate insert_sql for {self.table_name}: columns is empty."
            )

        col_list = ", ".join(c.quoted_name for c in self.columns)
        bind_list = ", ".join(f":{i}" for i in range(1, len(self.columns) + 1))

        self._insert_sql = (
            f"INSERT INTO {self.table_name} ({col_list})\n"
            f"VALUES ({bind_list})"
        )
        return self._insert_sql

    @classmethod
    def from_column_names(cls, table_name: str, column_names: list[str]) -> "TableMeta":
        """Build a ``TableMeta`` when only the normalized names are known."""
        return cls(
            table_name=table_name,
            columns=[ColumnDescriptor(source_key=n, column_name=n) for n in column_names],
        )
