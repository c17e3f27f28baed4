"""Database schema management using versioned migrations."""

import logging

from comit.db.migrations import get_current_version, run_migrations

logger = logging.getLogger(__name__)


async def _ensure_schema() -> None:
    """Bring the schema up to date. Safe to call repeatedly."""
    current_version = await get_current_version()
    logger.info("Current schema version: %d", current_version)

    applied = await run_migrations()

    if applied > 0:
        new_version = await get_current_version()
        logger.info("Schema updated from version %d to %d", current_version, new_version)
    else:
        logger.debug("Schema is up to date at version %d", current_version)
