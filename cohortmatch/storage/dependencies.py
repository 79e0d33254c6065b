from __future__ import annotations

from .base import InteractionLog, ProfileStore
from .config import DEFAULT_STORAGE_CONFIG, StorageConfig
from .memory import InMemoryInteractionLog, InMemoryProfileStore
from .tables import TableInteractionLog, TableProfileStore

_profile_store: ProfileStore | None = None
_interaction_log: InteractionLog | None = None


def _build(config: StorageConfig) -> tuple[ProfileStore, InteractionLog]:
    if config.backend == "table":
        return TableProfileStore(config.data_dir), TableInteractionLog(config.data_dir)
    if config.backend == "memory":
        return InMemoryProfileStore(), InMemoryInteractionLog()
    raise ValueError(f"Unknown storage backend {config.backend!r}")


def configure_stores(config: StorageConfig = DEFAULT_STORAGE_CONFIG) -> None:
    """(Re)create the process-wide stores from *config*."""
    global _profile_store, _interaction_log
    _profile_store, _interaction_log = _build(config)


def get_profile_store() -> ProfileStore:
    """FastAPI dependency returning the configured profile store."""
    if _profile_store is None:
        configure_stores()
    return _profile_store


def get_interaction_log() -> InteractionLog:
    """FastAPI dependency returning the configured interaction log."""
    if _interaction_log is None:
        configure_stores()
    return _interaction_log


def reset_stores() -> None:
    """Discard the current stores; the next request builds fresh ones."""
    global _profile_store, _interaction_log
    _profile_store = None
    _interaction_log = None
