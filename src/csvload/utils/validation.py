"""
Structural checks on an uploaded CSV.

Each check raises on failure and returns nothing on success.
"""

from __future__ import annotations

from collections import Counter

from csvload.configs.exceptions import AlignmentError, DuplicateColumnError, SourceError


def validate_row_alignment(
    row: list[str],
    expected_field_count: int,
    row_number: int,
    source_path: str | None = None,
) -> None:
    """
    Reject a data row whose field count differs from the column count.

    Args:
        row:                  Decoded data row.
        expected_field_count: Number of destination columns (identity excluded).
        row_number:           1-based position among data rows.
        source_path:          CSV path, for the error.

    Raises:
        AlignmentError: On any difference, short or long.
    """
    got = len(row)
    if got == expected_field_count:
        return
    raise AlignmentError(
        f"Row {row_number} has {got} fields, expected {expected_field_count}.",
        source_path=source_path,
        row_number=row_number,
        expected=expected_field_count,
        got=got,
    )


def validate_headers_not_empty(
    headers: list[str],
    source_path: str | None = None,
) -> None:
    """An empty header would normalize to an empty column name."""
    if not headers:
        raise SourceError("CSV file has no headers.", source_path=source_path)

    blank = next((pos for pos, h in enumerate(headers) if h == ""), None)
    if blank is not None:
        raise SourceError(f"Header at position {blank} is empty.", source_path=source_path)


def validate_unique_columns(column_names: list[str]) -> None:
    """
    Reject column lists in which a normalized name repeats.

    Raises:
        DuplicateColumnError: Listing every repeated name, in first-seen order.
    """
    duplicates = [name for name, n in Counter(column_names).items() if n > 1]
    if duplicates:
        raise DuplicateColumnError(
            f"Headers normalize to duplicate column names: {', '.join(duplicates)}",
            duplicates=duplicates,
        )
