"""Repository bundle singleton for the configured storage backend."""

import logging
from functools import lru_cache

from src.core.config import get_settings
from src.repositories.base import Repositories
from src.repositories.memory_store import InMemoryStore, create_memory_repositories
from src.repositories.supabase_store import create_supabase_repositories

logger = logging.getLogger(__name__)


@lru_cache
def get_memory_store() -> InMemoryStore:
    """Get the process-wide in-memory store used when STORAGE_BACKEND=memory."""
    return InMemoryStore()


@lru_cache
def get_repositories() -> Repositories:
    """Get cached repositories for the configured backend.

    Returns:
        Repositories: Product, cart, order and payment repositories.

    Note:
        Call get_repositories.cache_clear() (and get_memory_store.cache_clear()
        for the memory backend) after changing settings.
    """
    settings = get_settings()
    if settings.storage_backend == "memory":
        return create_memory_repositories(get_memory_store())
    logger.info("Using Supabase storage backend")
    return create_supabase_repositories()
