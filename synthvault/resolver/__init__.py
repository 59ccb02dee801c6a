"""Name registry and per-component dependency caches."""
from .cache import CacheSnapshot, DependencyCache
from .registry import NameRegistry

__all__ = ["CacheSnapshot", "DependencyCache", "NameRegistry"]
