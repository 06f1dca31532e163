"""
Oracle connection management.

The pool is process-wide state: create it once at startup with
``init_pool``, close it at shutdown with ``close_pool``.  Every pipeline
step borrows its own connection through ``acquire`` and gives it back on
every exit path; nothing holds a connection across steps.  ``connect`` opens
a one-off connection outside the pool.  Pooled and one-off connections get
the same session settings.

``oracledb`` is imported at module level — if it is not installed this
module will fail loudly on import with a clear ``ModuleNotFoundError``.
Install it with:  pip install oracledb

Usage:
    from csvload.discovery.oracle_client import acquire, close_pool, init_pool

    init_pool(dsn="host:1521/service", user="scott", password="tiger")
    with acquire() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM DUAL")
    close_pool()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import oracledb

from csvload.configs.exceptions import IngestionError

logger = logging.getLogger(__name__)

_pool = None

# ---------------------------------------------------------------------------
# Session settings applied to every new connection
# ---------------------------------------------------------------------------
_SESSION_SQL = [
    # VARCHAR2 lengths count characters, not bytes
    "ALTER SESSION SET NLS_LENGTH_SEMANTICS = 'CHAR'",
]


def connect(
    dsn: str,
    user: str,
    password: str,
    apply_session_settings: bool = True,
    **kwargs,
):
    """
    Open a single ``oracledb`` connection outside the pool.

    Args:
        dsn:                    Oracle DSN string (``host:port/service_name``).
        user:                   Oracle username.
        password:               Oracle password.
        apply_session_settings: If True, run ``_SESSION_SQL`` right away.
        **kwargs:               Forwarded to ``oracledb.connect()``.

    Returns:
        An open connection.  The caller closes it.

    Raises:
        IngestionError: If the connection or session setup fails.
    """
    try:
        conn = oracledb.connect(dsn=dsn, user=user, password=password, **kwargs)
    except oracledb.Error as e:
        raise IngestionError(f"Failed to connect to Oracle ({dsn}): {e}") from e

    if apply_session_settings:
        try:
            _apply_session(conn)
        except IngestionError:
            conn.close()
            raise

    return conn


def _apply_session(conn, requested_tag=None) -> None:
    """Run ``_SESSION_SQL`` on a new connection.  Also the pool's session callback."""
    try:
        with conn.cursor() as cur:
            for stmt in _SESSION_SQL:
                cur.execute(stmt)
    except oracledb.Error as e:
        raise IngestionError(f"Failed to apply session settings: {e}") from e


def init_pool(
    dsn: str,
    user: str,
    password: str,
    min_size: int = 1,
    max_size: int = 4,
    **kwargs,
):
    """
    Create the process-wide ``oracledb`` connection pool.

    Args:
        dsn:      Oracle DSN string (``host:port/service_name``).
        user:     Oracle username.
        password: Oracle password.
        min_size: Connections opened eagerly.
        max_size: Upper bound on concurrently borrowed connections.
        **kwargs: Forwarded to ``oracledb.create_pool()``.

    Returns:
        The new pool.

    Raises:
        IngestionError: If a pool already exists or creation fails.
    """
    global _pool
    if _pool is not None:
        raise IngestionError("Connection pool is already initialised; call close_pool() first.")

    try:
        _pool = oracledb.create_pool(
            dsn=dsn,
            user=user,
            password=password,
            min=min_size,
            max=max_size,
            increment=1,
            session_callback=_apply_session,
            **kwargs,
        )
    except oracledb.Error as e:
        raise IngestionError(f"Failed to create Oracle pool ({dsn}): {e}") from e

    logger.info("Oracle pool ready: dsn=%s min=%d max=%d", dsn, min_size, max_size)
    return _pool


def get_pool():
    """
    Return the process-wide pool.

    Raises:
        IngestionError: If ``init_pool`` has not been called.
    """
    if _pool is None:
        raise IngestionError("Connection pool is not initialised; call init_pool() at startup.")
    return _pool


def close_pool() -> None:
    """Close the process-wide pool, if any.  Safe to call more than once."""
    global _pool
    if _pool is None:
        return
    pool, _pool = _pool, None
    try:
        pool.close()
    except oracledb.Error as e:
        raise IngestionError(f"Failed to close Oracle pool: {e}") from e
    logger.info("Oracle pool closed")


@contextmanager
def acquire(pool=None) -> Iterator:
    """
    Borrow a connection for the duration of a ``with`` block.

    Args:
        pool: Pool to borrow from.  Defaults to the process-wide pool.

    Yields:
        An open connection.  It is released back to the pool on every exit
        path, including exceptions raised inside the block.

    Raises:
        IngestionError: If no connection can be acquired.
    """
    pool = pool if pool is not None else get_pool()
    try:
        conn = pool.acquire()
    except oracledb.Error as e:
        raise IngestionError(f"Failed to acquire Oracle connection: {e}") from e

    try:
        yield conn
    finally:
        pool.release(conn)
