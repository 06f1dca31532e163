"""
Oracle identifier handling.

This module is the **sole SQL injection boundary** for table and column
names derived from CSV headers or caller input.  Raw strings from those
sources must never appear in a SQL statement without passing through
``validate_table_name`` or ``quote_identifier`` first.

Column names are normalized (whitespace runs → ``_``, lower-case) and then
emitted as *quoted* identifiers, so reserved words and punctuation are
legal and the lower-case spelling is preserved in the dictionary.  The
only characters a quoted Oracle identifier cannot hold are ``"`` and NUL.

Destination table names are emitted *unquoted* and must therefore be a
plain Oracle identifier: a letter followed by letters, digits, ``_``,
``$`` or ``#``, optionally qualified as ``SCHEMA.TABLE``.
"""

from __future__ import annotations

import re

from csvload.configs.config import ORACLE_MAX_IDENTIFIER_LEN_EXTENDED
from csvload.configs.exceptions import IdentifierError

# ---------------------------------------------------------------------------
# Oracle reserved words (subset that most commonly appear as table names)
# These cannot be used as unquoted table names.
# ---------------------------------------------------------------------------
_RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "ACCESS", "ADD", "ALL", "ALTER", "AND", "ANY", "AS", "ASC",
        "AUDIT", "BETWEEN", "BY", "CHAR", "CHECK", "CLUSTER", "COLUMN",
        "COMMENT", "COMPRESS", "CONNECT", "CREATE", "CURRENT", "DATE",
        "DECIMAL", "DEFAULT", "DELETE", "DESC", "DISTINCT", "DROP",
        "ELSE", "EXCLUSIVE", "EXISTS", "FILE", "FLOAT", "FOR", "FROM",
        "GRANT", "GROUP", "HAVING", "IDENTIFIED", "IMMEDIATE", "IN",
        "INCREMENT", "INDEX", "INITIAL", "INSERT", "INTEGER", "INTERSECT",
        "INTO", "IS", "LEVEL", "LIKE", "LOCK", "LONG", "MAXEXTENTS",
        "MINUS", "MLSLABEL", "MODE", "MODIFY", "NOAUDIT", "NOCOMPRESS",
        "NOT", "NOWAIT", "NULL", "NUMBER", "OF", "OFFLINE", "ON",
        "ONLINE", "OPTION", "OR", "ORDER", "PCTFREE", "PRIOR",
        "PRIVILEGES", "PUBLIC", "RAW", "RENAME", "RESOURCE", "REVOKE",
        "ROW", "ROWID", "ROWNUM", "ROWS", "SELECT", "SESSION", "SET",
        "SHARE", "SIZE", "SMALLINT", "START", "SUCCESSFUL", "SYNONYM",
        "SYSDATE", "TABLE", "THEN", "TO", "TRIGGER", "UID", "UNION",
        "UNIQUE", "UPDATE", "USER", "VALIDATE", "VALUES", "VARCHAR",
        "VARCHAR2", "VIEW", "WHENEVER", "WHERE", "WITH",
    }
)

_WHITESPACE_RUN_RE = re.compile(r"\s+")
_PLAIN_IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_$#]*$")
_QUOTED_FORBIDDEN = ('"', "\x00")


def normalize_column_name(raw: str) -> str:
    """
    Derive a column name from a CSV header.

    Every maximal run of whitespace becomes a single ``_`` and the result is
    lower-cased.  Nothing else is changed: no truncation, no collision
    handling, no reserved-word escaping (quoting takes care of that).

    Examples::

        "First Name"      -> "first_name"
        "Unit  Price\\t(€)" -> "unit_price_(€)"
    """
    return _WHITESPACE_RUN_RE.sub("_", raw).lower()


def quote_identifier(
    name: str,
    max_len: int = ORACLE_MAX_IDENTIFIER_LEN_EXTENDED,
) -> str:
    """
    Return ``name`` as a double-quoted Oracle identifier.

    Args:
        name:    A normalized column name.
        max_len: Maximum identifier length in bytes.

    Returns:
        The quoted identifier, e.g. ``"first_name"``.

    Raises:
        IdentifierError: If ``name`` is empty, contains ``"`` or NUL, or is
                         longer than ``max_len`` bytes.
    """
    if not name:
        raise IdentifierError("Column name is empty.", identifier=name)

    for ch in _QUOTED_FORBIDDEN:
        if ch in name:
            raise IdentifierError(
                f"Column name {name!r} contains a forbidden character {ch!r}.",
                identifier=name,
            )

    if len(name.encode("utf-8")) > max_len:
        raise IdentifierError(
            f"Column name {name!r} exceeds the {max_len}-byte identifier limit.",
            identifier=name,
        )

    return f'"{name}"'


def validate_table_name(
    raw: str,
    max_len: int = ORACLE_MAX_IDENTIFIER_LEN_EXTENDED,
) -> str:
    """
    Validate a caller-supplied destination name and return its canonical form.

    Accepts ``TABLE`` or ``SCHEMA.TABLE`` where each part is a plain Oracle
    identifier that is not a reserved word.  The result is upper-cased,
    matching how Oracle resolves unquoted names.

    Raises:
        IdentifierError: If any part fails validation.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise IdentifierError(f"Table name is empty: {raw!r}", identifier=raw)

    parts = raw.strip().split(".")
    if len(parts) > 2:
        raise IdentifierError(
            f"Table name {raw!r} has too many qualifiers (expected TABLE or SCHEMA.TABLE).",
            identifier=raw,
        )

    for part in parts:
        if not _PLAIN_IDENTIFIER_RE.match(part):
            raise IdentifierError(
                f"Table name {raw!r} is not a valid identifier: "
                "use letters, digits, '_', '$' or '#', starting with a letter.",
                identifier=raw,
            )
        if len(part) > max_len:
            raise IdentifierError(
                f"Table name part {part!r} exceeds the {max_len}-character identifier limit.",
                identifier=raw,
            )
        if is_reserved(part):
            raise IdentifierError(
                f"Table name part {part!r} is an Oracle reserved word.",
                identifier=raw,
            )

    return ".".join(p.upper() for p in parts)


def is_reserved(name: str) -> bool:
    """Return True if ``name`` (uppercased) is an Oracle reserved word."""
    return name.upper() in _RESERVED_WORDS
