"""
Source file cleanup.

Uploaded CSVs are temporary: once the Bulk Loader finishes (either way) the
file is removed.  Removal fails loudly rather than silently swallowing the
error, except for the file already being gone.
"""

from __future__ import annotations

import logging
from pathlib import Path

from csvload.configs.exceptions import IngestionError

logger = logging.getLogger(__name__)


def remove_source_file(source_path: Path | str) -> bool:
    """
    Delete ``source_path``.

    Returns:
        True if the file was deleted, False if it no longer existed.

    Raises:
        IngestionError: If the file exists but cannot be removed.
    """
    source = Path(source_path)
    try:
        source.unlink()
    except FileNotFoundError:
        logger.debug("Source file already gone: %s", source)
        return False
    except OSError as e:
        raise IngestionError(f"Failed to remove source file {source}: {e}") from e

    logger.debug("Removed source file %s", source)
    return True
