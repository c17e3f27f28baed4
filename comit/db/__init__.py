from comit.db.core import close_pool, get_pool_stats, init_pool
from comit.db.events import (
    PostgresRepository,
    events_create,
    events_get,
    events_get_availabilities,
    events_get_windows,
    events_replace_availability,
)

__all__ = [
    "PostgresRepository",
    "close_pool",
    "events_create",
    "events_get",
    "events_get_availabilities",
    "events_get_windows",
    "events_replace_availability",
    "get_pool_stats",
    "init_pool",
]
