"""Per-component memoization of registry lookups with explicit refresh."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..errors import MissingDependencyError
from ..events import EventLog
from .registry import NameRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSnapshot:
    """Resolved dependencies captured by the last rebuild."""

    entries: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, name: str) -> Any:
        return self.entries.get(name)


class DependencyCache:
    """Resolves a fixed set of required names through a NameRegistry.

    The cache is never refreshed implicitly: callers rebuild it after the
    registry changes and may ask whether it is still current.
    """

    def __init__(
        self,
        registry: NameRegistry,
        required_names: Iterable[str],
        events: EventLog,
        owner_label: str = "",
    ) -> None:
        self._registry = registry
        self._required = tuple(dict.fromkeys(required_names))
        self._events = events
        self._owner_label = owner_label
        self._snapshot = CacheSnapshot()

    @property
    def required_names(self) -> tuple[str, ...]:
        return self._required

    @property
    def snapshot(self) -> CacheSnapshot:
        return self._snapshot

    def rebuild(self) -> CacheSnapshot:
        """Re-resolve every required name; fails on the first missing one."""
        resolved: dict[str, Any] = {}
        for name in self._required:
            resolved[name] = self._registry.require_and_get_address(
                name, f"Resolver missing target: {name}"
            )
        self._snapshot = CacheSnapshot(MappingProxyType(resolved))
        for name, destination in resolved.items():
            self._events.emit(
                "CacheUpdated",
                name=name,
                destination=getattr(destination, "address", str(destination)),
            )
        logger.debug("%s cache rebuilt (%d entries)", self._owner_label, len(resolved))
        return self._snapshot

    def is_current(self) -> bool:
        """True when every required name is cached and matches the registry."""
        for name in self._required:
            live = self._registry.get_address(name)
            cached = self._snapshot.get(name)
            if live is None or cached is not live:
                return False
        return True

    def require(self, name: str) -> Any:
        destination = self._snapshot.get(name)
        if destination is None:
            raise MissingDependencyError(name, f"Missing address: {name}")
        return destination
