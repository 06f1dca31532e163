"""
Upload reader shared by both pipeline steps.

Contract:
  - ``open`` decodes the header record and nothing else, so a file whose
    data rows are broken can still be materialized.
  - ``rows`` starts from the first data record on every call; the Bulk
    Loader re-reads the same file the Materializer opened.
  - Headers and values are returned as written.  Nothing is trimmed; a
    UTF-8 byte order mark at the start of the file is not part of the text.
  - A record with no fields at all (an empty line) is only a value when
    the file has a single column, where it reads as ``[""]``.  In wider
    files it cannot be a valid row and is skipped.
  - Undecodable bytes and misplaced quotes raise ``SourceError`` naming the
    line.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator

from csvload.configs.csv_dialect import UploadDialect
from csvload.configs.exceptions import SourceError
from csvload.discovery.base import AbstractSource

ENCODING = "utf-8-sig"


class CSVReader(AbstractSource):
    """
    Reads an uploaded CSV file.

    Args:
        path: Path to the CSV file.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__(path)
        self._handle = None
        self._header: list[str] | None = None

    def open(self) -> None:
        """
        Raises:
            SourceError: The file is missing, empty, or its header cannot
                         be decoded.
        """
        try:
            self._handle = open(self.path, encoding=ENCODING, newline="")
        except OSError as e:
            raise SourceError(f"Cannot open {self.path}: {e}", source_path=str(self.path)) from e

        try:
            header = next(self._records(), None)
        except SourceError:
            self.close()
            raise

        if header is None:
            self.close()
            raise SourceError(f"CSV file is empty: {self.path}", source_path=str(self.path))
        self._header = header

    def headers(self) -> list[str]:
        if self._header is None:
            raise RuntimeError("CSVReader.open() must be called before headers().")
        return self._header

    def rows(self) -> Iterator[list[str]]:
        if self._handle is None or self._header is None:
            raise RuntimeError("CSVReader.open() must be called before rows().")

        single_column = len(self._header) == 1
        records = self._records()
        next(records)
        for record in records:
            if record:
                yield record
            elif single_column:
                yield [""]

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _records(self) -> Iterator[list[str]]:
        """Decode records from the top of the file."""
        self._handle.seek(0)
        reader = csv.reader(self._handle, dialect=UploadDialect)
        try:
            yield from reader
        except (csv.Error, UnicodeDecodeError) as e:
            raise SourceError(
                f"Malformed CSV in {self.path} near line {reader.line_num}: {e}",
                source_path=str(self.path),
            ) from e
