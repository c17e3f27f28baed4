"""Shared psycopg connection pool for the event tables.

The pool is opened once in the app lifespan, which also brings the schema up
to date. Code that runs without a pool (scripts, migrations in isolation)
falls back to a one-off connection built from the same settings.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import psycopg
from psycopg_pool import AsyncConnectionPool

from comit.config import PostgresSettings, get_settings

logger = logging.getLogger(__name__)

_pool: AsyncConnectionPool | None = None


def _build_pool(settings: PostgresSettings) -> AsyncConnectionPool:
    return AsyncConnectionPool(
        settings.get_dsn(),
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        max_lifetime=settings.pool_max_lifetime,
        max_idle=settings.pool_max_idle,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )


async def init_pool() -> None:
    """Open the pool and apply pending migrations. A second call is a no-op."""
    global _pool
    if _pool is not None:
        return
    settings = get_settings().postgres
    pool = _build_pool(settings)
    await pool.open()
    _pool = pool
    logger.info(
        "Opened pool to %s:%d/%s (min=%d, max=%d)",
        settings.host,
        settings.port,
        settings.database,
        settings.pool_min_size,
        settings.pool_max_size,
    )

    from comit.db.schema import _ensure_schema

    try:
        await _ensure_schema()
    except Exception:
        logger.exception("Schema migration failed; closing pool")
        await close_pool()
        raise


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        await pool.close()
        logger.info("Database connection pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True) -> AsyncIterator[psycopg.AsyncConnection]:
    """Borrow a pooled connection, or open a one-off one when no pool exists.

    Pass ``autocommit=False`` and use ``conn.transaction()`` for writes that
    must land together.
    """
    if _pool is None:
        dsn = get_settings().postgres.get_dsn()
        async with await psycopg.AsyncConnection.connect(dsn, autocommit=autocommit) as conn:
            yield conn
        return
    async with _pool.connection() as conn:
        await conn.set_autocommit(autocommit)
        yield conn


def get_pool_stats() -> dict[str, object]:
    """Pool occupancy for /health."""
    if _pool is None:
        return {"status": "not_initialized"}
    stats = _pool.get_stats()
    return {
        "status": "active",
        "size": stats.get("pool_size", 0),
        "available": stats.get("pool_available", 0),
        "waiting": stats.get("requests_waiting", 0),
        "min_size": stats.get("pool_min", 0),
        "max_size": stats.get("pool_max", 0),
    }


__all__ = [
    "_get_connection",
    "close_pool",
    "get_pool_stats",
    "init_pool",
]
