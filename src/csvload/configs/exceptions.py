"""
Custom exceptions for the CSV → Oracle materialization pipeline.

Hierarchy:
    IngestionError
    ├── UploadValidationError   Missing file or destination name; nothing ran.
    ├── SourceError             CSV cannot be opened, is empty, or is malformed.
    ├── SchemaError             Destination table could not be materialized.
    │   ├── IdentifierError     Destination or column name is not a safe identifier.
    │   ├── DuplicateColumnError Two headers normalize to the same column name.
    │   └── DDLError            DROP TABLE or CREATE TABLE failed.
    └── LoadError               Insert transaction failed and was rolled back.
        ├── NoDataError         CSV has a header but no data rows.
        └── AlignmentError      Row field count doesn't match header count.
"""


class IngestionError(Exception):
    """Base class for all pipeline errors."""


class UploadValidationError(IngestionError):
    """Raised at the upload boundary before the pipeline runs."""


class SourceError(IngestionError):
    """
    Raised when the source CSV cannot be read.

    Args:
        message: Human-readable description of the failure.
        source_path: Path of the file being processed when the error occurred.
    """

    def __init__(self, message: str, source_path: str | None = None) -> None:
        super().__init__(message)
        self.source_path = source_path

    def __str__(self) -> str:
        base = super().__str__()
        if self.source_path:
            return f"{base} | source={self.source_path}"
        return base


class SchemaError(IngestionError):
    """Base class for failures while materializing the destination table."""


class IdentifierError(SchemaError):
    """
    Raised when a destination or column name cannot be used safely in SQL.

    Args:
        message: Human-readable description.
        identifier: The offending identifier.
    """

    def __init__(self, message: str, identifier: str | None = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class DuplicateColumnError(SchemaError):
    """
    Raised when two or more headers normalize to the same column name.

    Args:
        message: Human-readable description.
        duplicates: The normalized names that occur more than once.
    """

    def __init__(self, message: str, duplicates: list[str] | None = None) -> None:
        super().__init__(message)
        self.duplicates = list(duplicates or [])


class DDLError(SchemaError):
    """
    Raised when DDL execution fails.

    Args:
        message: Human-readable description.
        ddl: The DDL statement that caused the failure, if available.
    """

    def __init__(self, message: str, ddl: str | None = None) -> None:
        super().__init__(message)
        self.ddl = ddl

    def __str__(self) -> str:
        base = super().__str__()
        if self.ddl:
            return f"{base} | ddl={self.ddl!r}"
        return base


class LoadError(IngestionError):
    """
    Raised when the bulk insert fails.  The transaction has been rolled back.

    Args:
        message: Human-readable description.
        table_name: Destination table.
    """

    def __init__(self, message: str, table_name: str | None = None) -> None:
        super().__init__(message)
        self.table_name = table_name


class NoDataError(LoadError):
    """Raised when the CSV contains a header row but zero data rows."""


class AlignmentError(LoadError):
    """
    Raised when a CSV row has a different number of fields than the header row.

    Args:
        message: Human-readable description.
        source_path: Path of the CSV file.
        row_number: 1-based data row number where the misalignment was detected.
        expected: Number of fields expected (from header).
        got: Number of fields actually found in the row.
    """

    def __init__(
        self,
        message: str,
        source_path: str | None = None,
        row_number: int | None = None,
        expected: int | None = None,
        got: int | None = None,
    ) -> None:
        super().__init__(message)
        self.source_path = source_path
        self.row_number = row_number
        self.expected = expected
        self.got = got

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.row_number is not None:
            parts.append(f"row={self.row_number}")
        if self.expected is not None:
            parts.append(f"expected={self.expected}")
        if self.got is not None:
            parts.append(f"got={self.got}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base
