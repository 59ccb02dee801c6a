"""Append-only audit log of component state transitions."""
from __future__ import annotations

import logging

from .interfaces.clock import Clock
from .models import Event


class EventLog:
    """Collects events emitted by one component and mirrors them to logging."""

    def __init__(self, source: str, clock: Clock, logger: logging.Logger) -> None:
        self._source = source
        self._clock = clock
        self._logger = logger
        self._events: list[Event] = []

    def emit(self, name: str, /, **args: object) -> Event:
        event = Event(name=name, args=dict(args), timestamp=self._clock.now())
        self._events.append(event)
        self._logger.info("%s · %s %s", self._source, name, args)
        return event

    def all(self) -> tuple[Event, ...]:
        return tuple(self._events)

    def named(self, name: str) -> tuple[Event, ...]:
        return tuple(e for e in self._events if e.name == name)

    def last(self) -> Event | None:
        return self._events[-1] if self._events else None

    def __len__(self) -> int:
        return len(self._events)
