"""
Load failure logging.

Appends one line per rolled-back load to a single ``.log`` file in
``error_dir``.  Each entry includes the timestamp, source file name,
destination table, Oracle error code, and error message.

Log format (one line per failure)::

    2024-01-15T09:30:00 | source=contacts.csv | table=CONTACTS | ora_code=ORA-12899 | msg=value too large ...

The log file is named ``csvload_load_errors.log`` and is appended to on
every run — never truncated — so failures from every upload are in one
place for easy ``grep``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

LOG_FILENAME = "csvload_load_errors.log"

_ORA_CODE_RE = re.compile(r"ORA-\d+")


def log_load_error(
    error: BaseException,
    source_path: Path | str,
    table_name: str,
    error_dir: Path | str,
) -> Path:
    """
    Append ``error`` to the load error log.

    Args:
        error:       The exception that caused the rollback.
        source_path: Path of the CSV file being processed.
        table_name:  Destination table.
        error_dir:   Directory where the log file lives.  Created if absent.

    Returns:
        Path to the log file that was written.
    """
    error_dir = Path(error_dir)
    error_dir.mkdir(parents=True, exist_ok=True)

    log_path = error_dir / LOG_FILENAME
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    message = " ".join(str(error).split())

    with open(log_path, "a", encoding="utf-8") as f:
        f.write(
            f"{timestamp} | "
            f"source={Path(source_path).name} | "
            f"table={table_name} | "
            f"ora_code={extract_ora_code(message)} | "
            f"msg={message}\n"
        )

    return log_path


def extract_ora_code(message: str) -> str:
    """
    Extract the ORA-XXXXX code from an Oracle error message string.

    Returns ``'ORA-UNKNOWN'`` if no code is found.
    """
    match = _ORA_CODE_RE.search(message)
    return match.group(0) if match else "ORA-UNKNOWN"


def count_errors_in_log(error_dir: Path | str) -> int:
    """
    Count the number of entries in the log file.

    Returns 0 if the log file does not exist.
    """
    log_path = Path(error_dir) / LOG_FILENAME
    if not log_path.exists():
        return 0
    with open(log_path, encoding="utf-8") as f:
        return sum(1 for line in f if line.strip())
