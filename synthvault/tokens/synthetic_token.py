"""In-memory fungible ledger whose supply is controlled by the Issuer."""
from __future__ import annotations

import logging

from ..constants import ISSUER_NAME
from ..errors import AuthorizationError, InsufficientBalanceError, ValidationError
from ..events import EventLog
from ..interfaces.clock import Clock
from ..ownership import Ownable
from ..resolver import DependencyCache, NameRegistry

logger = logging.getLogger(__name__)

ZERO_ADDRESS = ""


class SyntheticToken:
    """Balance store with delegated transfers and issuer-gated mint/burn."""

    decimals = 18

    def __init__(
        self,
        name: str,
        symbol: str,
        currency_key: str,
        owner: str,
        registry: NameRegistry,
        clock: Clock,
        address: str | None = None,
    ) -> None:
        self.name = name
        self.symbol = symbol
        self.currency_key = currency_key
        self.address = address or f"token:{symbol}"
        self.events = EventLog(self.address, clock, logger)
        self.ownership = Ownable(owner, self.events)
        self.cache = DependencyCache(
            registry, self.required_names(), self.events, self.address
        )
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0

    # ------------------------------------------------------------------
    # Dependency cache
    # ------------------------------------------------------------------

    @staticmethod
    def required_names() -> tuple[str, ...]:
        return (ISSUER_NAME,)

    def rebuild_cache(self) -> None:
        self.cache.rebuild()

    def is_cache_current(self) -> bool:
        return self.cache.is_current()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("Amount cannot be negative")
        if not to:
            raise ValidationError("Cannot transfer to the zero address")
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: transfer amount exceeds balance"
            )
        self._balances[sender] = balance - amount
        self._balances[to] = self.balance_of(to) + amount
        self.events.emit("Transfer", sender=sender, to=to, amount=amount)

    async def transfer(self, caller: str, to: str, amount: int) -> bool:
        self._move(caller, to, amount)
        return True

    async def approve(self, caller: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise ValidationError("Amount cannot be negative")
        self._allowances[(caller, spender)] = amount
        self.events.emit("Approval", owner=caller, spender=spender, amount=amount)
        return True

    async def transfer_from(
        self, caller: str, owner: str, to: str, amount: int
    ) -> bool:
        allowed = self.allowance(owner, caller)
        if allowed < amount:
            raise InsufficientBalanceError(f"{self.symbol}: insufficient allowance")
        self._move(owner, to, amount)
        self._allowances[(owner, caller)] = allowed - amount
        return True

    # ------------------------------------------------------------------
    # Supply (issuer only)
    # ------------------------------------------------------------------

    def _require_issuer(self, caller: str) -> None:
        issuer = self.cache.require(ISSUER_NAME)
        if caller != issuer.address:
            raise AuthorizationError("Only the Issuer can perform this action")

    async def mint(self, caller: str, to: str, amount: int) -> None:
        self._require_issuer(caller)
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount
        self.events.emit("Transfer", sender=ZERO_ADDRESS, to=to, amount=amount)

    async def burn(self, caller: str, account: str, amount: int) -> None:
        self._require_issuer(caller)
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalanceError(f"{self.symbol}: burn amount exceeds balance")
        self._balances[account] = balance - amount
        self._total_supply -= amount
        self.events.emit("Transfer", sender=account, to=ZERO_ADDRESS, amount=amount)
