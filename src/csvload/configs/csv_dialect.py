"""
The CSV dialect uploads are decoded with.

Fields come back exactly as written between the delimiters: no leading or
trailing whitespace is removed, so ``x, 1`` decodes to ``["x", " 1"]``.
Quoting follows RFC 4180 (``""`` inside a quoted field is one ``"``), and
a quote in the wrong place is an error rather than a guess.
"""

from __future__ import annotations

import csv


class UploadDialect(csv.Dialect):
    """Comma-separated, double-quoted, whitespace-preserving, strict."""

    delimiter = ","
    quotechar = '"'
    doublequote = True
    escapechar = None
    skipinitialspace = False
    lineterminator = "\r\n"
    quoting = csv.QUOTE_MINIMAL
    strict = True
