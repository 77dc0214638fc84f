from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool

from claimdocs.config.settings import Settings

_pool: ConnectionPool | None = None

ConnectionFactory = Callable[[], AbstractContextManager[psycopg.Connection[Any]]]


def init_pool(settings: Settings) -> None:
    """Open the process-wide pool. Waits until min_size connections are up."""
    global _pool  # noqa: PLW0603
    conninfo = make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
    )
    _pool = ConnectionPool(
        conninfo,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        name="claimdocs",
        open=True,
    )
    _pool.wait(timeout=settings.db_connect_timeout_seconds)


def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a pooled connection. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn


@contextmanager
def transaction() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a pooled connection inside a transaction.

    Commits when the block exits normally, rolls back on exception. This is
    the default ConnectionFactory of the services and pipeline steps.
    """
    with get_connection() as conn:
        with conn.transaction():
            yield conn
