"""Swap one synthetic asset for another at oracle spot prices."""
from __future__ import annotations

import logging

from ..constants import (
    DEFAULT_SWAP_FEE,
    ISSUER_NAME,
    MAX_SWAP_FEE,
    ORACLE_NAME,
    SWAP_NAME,
    WAD,
)
from ..errors import InvalidPriceError, SlippageError, ValidationError
from ..events import EventLog
from ..guard import OperationGuard
from ..interfaces.clock import Clock
from ..models import SwapQuote
from ..ownership import Ownable
from ..resolver import DependencyCache, NameRegistry

logger = logging.getLogger(__name__)


class SwapEngine:
    """Burns the source asset and issues the target asset.

    There is no liquidity curve: the rate is whatever the oracle reports at
    execution time. The fee is taken in the target asset and accrues to a
    per-asset pool that the owner can mint out.
    """

    def __init__(
        self,
        owner: str,
        registry: NameRegistry,
        clock: Clock,
        swap_fee_rate: int = DEFAULT_SWAP_FEE,
        address: str = SWAP_NAME,
    ) -> None:
        if not 0 <= swap_fee_rate <= MAX_SWAP_FEE:
            raise ValidationError("Fee too high")
        self.address = address
        self.swap_fee_rate = swap_fee_rate
        self.events = EventLog(address, clock, logger)
        self.ownership = Ownable(owner, self.events)
        self.cache = DependencyCache(
            registry, self.required_names(), self.events, address
        )
        self._guard = OperationGuard(address)
        self._fee_pool: dict[str, int] = {}

    @staticmethod
    def required_names() -> tuple[str, ...]:
        return (ORACLE_NAME, ISSUER_NAME)

    def rebuild_cache(self) -> None:
        self.cache.rebuild()

    def is_cache_current(self) -> bool:
        return self.cache.is_current()

    def accrued_fees(self, key: str) -> int:
        return self._fee_pool.get(key, 0)

    async def _valid_price(self, key: str) -> int:
        result = await self.cache.require(ORACLE_NAME).get_price(key)
        if not result.is_valid:
            raise InvalidPriceError(f"Invalid price for {key}")
        return result.price

    async def preview_swap(self, from_key: str, to_key: str, amount: int) -> SwapQuote:
        if from_key == to_key:
            raise ValidationError("Cannot swap same asset")
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")

        from_price = await self._valid_price(from_key)
        to_price = await self._valid_price(to_key)

        from_value = amount * from_price // WAD
        raw_out = from_value * WAD // to_price
        fee = raw_out * self.swap_fee_rate // WAD
        return SwapQuote(out_amount=raw_out - fee, fee_amount=fee)

    async def swap(
        self, caller: str, from_key: str, to_key: str, amount: int, min_out: int
    ) -> SwapQuote:
        async with self._guard.enter("swap"):
            quote = await self.preview_swap(from_key, to_key, amount)
            if quote.out_amount < min_out:
                raise SlippageError("Slippage too high")

            issuer = self.cache.require(ISSUER_NAME)
            await issuer.burn(self.address, from_key, caller, amount)
            if quote.out_amount > 0:
                try:
                    await issuer.issue(self.address, to_key, caller, quote.out_amount)
                except Exception:
                    logger.error("Issuing %s failed; restoring burned %s", to_key, from_key)
                    await issuer.issue(self.address, from_key, caller, amount)
                    raise

            self._fee_pool[to_key] = self.accrued_fees(to_key) + quote.fee_amount
            self.events.emit(
                "SwapExecuted",
                account=caller,
                from_key=from_key,
                to_key=to_key,
                amount_in=amount,
                amount_out=quote.out_amount,
                fee=quote.fee_amount,
            )
            return quote

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def set_swap_fee(self, caller: str, rate: int) -> None:
        self.ownership.require_owner(caller)
        if not 0 <= rate <= MAX_SWAP_FEE:
            raise ValidationError("Fee too high")
        old = self.swap_fee_rate
        self.swap_fee_rate = rate
        self.events.emit("SwapFeeUpdated", old=old, new=rate)

    async def withdraw_fees(self, caller: str, key: str, to: str) -> int:
        """Mint the accrued fee pool for ``key`` to ``to``; supply grows."""
        self.ownership.require_owner(caller)
        async with self._guard.enter("withdraw_fees"):
            amount = self.accrued_fees(key)
            if amount == 0:
                raise ValidationError(f"No fees accrued for {key}")

            issuer = self.cache.require(ISSUER_NAME)
            await issuer.issue(self.address, key, to, amount)
            self._fee_pool[key] = 0
            self.events.emit("FeesWithdrawn", key=key, to=to, amount=amount)
            return amount
