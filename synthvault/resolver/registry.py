"""Name → component registry consulted by every dependency cache."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..errors import MissingDependencyError, ValidationError
from ..events import EventLog
from ..interfaces.clock import Clock
from ..ownership import Ownable

logger = logging.getLogger(__name__)


class NameRegistry:
    """Owner-managed mapping from names to component handles."""

    def __init__(self, owner: str, clock: Clock, address: str = "NameRegistry") -> None:
        self.address = address
        self.events = EventLog(address, clock, logger)
        self.ownership = Ownable(owner, self.events)
        self._repository: dict[str, Any] = {}

    def import_addresses(
        self, caller: str, names: Sequence[str], destinations: Sequence[Any]
    ) -> None:
        """Bind each name to its destination, overwriting earlier bindings."""
        self.ownership.require_owner(caller)
        if len(names) != len(destinations):
            raise ValidationError("Input lengths must match")

        for name, destination in zip(names, destinations):
            self._repository[name] = destination
            self.events.emit(
                "AddressImported", name=name, destination=_label(destination)
            )

    def get_address(self, name: str) -> Any:
        """Return the bound destination or None."""
        return self._repository.get(name)

    def require_and_get_address(self, name: str, reason: str) -> Any:
        destination = self._repository.get(name)
        if destination is None:
            raise MissingDependencyError(name, reason)
        return destination

    def are_addresses_imported(
        self, names: Sequence[str], destinations: Sequence[Any]
    ) -> bool:
        return all(
            self._repository.get(name) is dest for name, dest in zip(names, destinations)
        )

    def names(self) -> tuple[str, ...]:
        return tuple(self._repository)


def _label(destination: Any) -> str:
    return getattr(destination, "address", None) or str(destination)
