"""Price reference protocol: external aggregator abstraction."""
from typing import Protocol

from ..models import RoundData


class PriceReference(Protocol):
    """Abstract interface for an external price aggregator."""

    async def latest_round_data(self) -> RoundData: ...

    async def decimals(self) -> int: ...
