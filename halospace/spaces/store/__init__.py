"""Store implementations for the space index and per-space metadata."""

from halospace.spaces.store.base import IndexStore, MetaStore
from halospace.spaces.store.index import LocalIndexStore
from halospace.spaces.store.meta import LocalMetaStore

__all__ = ["IndexStore", "LocalIndexStore", "LocalMetaStore", "MetaStore"]
