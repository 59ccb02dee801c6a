"""Token ledger protocol: fungible balance store abstraction."""
from typing import Protocol


class TokenLedger(Protocol):
    """Abstract interface for a fungible token ledger."""

    @property
    def address(self) -> str: ...

    @property
    def currency_key(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def total_supply(self) -> int: ...

    async def transfer(self, caller: str, to: str, amount: int) -> bool: ...

    async def transfer_from(
        self, caller: str, owner: str, to: str, amount: int
    ) -> bool: ...

    async def mint(self, caller: str, to: str, amount: int) -> None: ...

    async def burn(self, caller: str, account: str, amount: int) -> None: ...
