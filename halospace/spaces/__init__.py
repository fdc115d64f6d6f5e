"""Workspace ("space") registry: persistent id -> root index, LRU cache and path authority."""

from halospace.spaces.authority import PathAuthority
from halospace.spaces.repository import SpaceRepository
from halospace.spaces.settings import HaloSettings, get_settings

__all__ = ["HaloSettings", "PathAuthority", "SpaceRepository", "get_settings"]
