"""Clock protocol: source of the current timestamp."""
from typing import Protocol


class Clock(Protocol):
    """Abstract time source, seconds since the epoch."""

    def now(self) -> int: ...
