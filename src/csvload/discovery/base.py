"""
Source reader interface.

Both pipeline steps read the uploaded file through an ``AbstractSource``:
the Materializer asks for ``headers()`` only, the Bulk Loader walks
``rows()``.  Keeping one decoding path means the column count the table was
built from is the same one every data row is checked against.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator


class AbstractSource(ABC):
    """
    A tabular upload: one header record followed by data records.

    Use as a context manager; ``open`` runs on entry and ``close`` on exit.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying file and decode the header record."""

    @abstractmethod
    def headers(self) -> list[str]:
        """Header fields in file order, as decoded by ``open``."""

    @abstractmethod
    def rows(self) -> Iterator[list[str]]:
        """
        Data records in file order, header excluded.

        Every call starts again from the first data record.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the underlying file.  Calling it twice is harmless."""

    def __enter__(self) -> "AbstractSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
