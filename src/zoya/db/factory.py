"""Startup-time store selection.

Usage:
    from zoya.db.factory import create_store

    store = await create_store(config)
"""

from zoya.config_schema import AppConfig
from zoya.core.logging import get_logger
from zoya.db.memory import MemoryStore
from zoya.db.sqlite_store import SqliteStore
from zoya.db.store import Store

logger = get_logger(__name__)


async def create_store(config: AppConfig) -> Store:
    """Build and initialize the store named by ``config.storage.backend``.

    Args:
        config: Application configuration

    Returns:
        An initialized Store

    Raises:
        StorageUnavailableError: If the durable store cannot be initialized
    """
    storage = config.storage
    memory = MemoryStore(tz=config.tzinfo, seed=storage.seed_sample_data)

    store: Store
    if storage.backend == "sqlite":
        store = SqliteStore(
            storage.db_path,
            fallback=memory,
            pool_size=storage.pool_size,
            acquire_timeout=storage.acquire_timeout_seconds,
            busy_timeout_ms=storage.busy_timeout_ms,
        )
    else:
        store = memory

    await store.initialize()

    logger.info(
        "store_created",
        backend=store.backend_name,
        seeded=storage.seed_sample_data,
        timezone=config.timezone,
    )
    return store
