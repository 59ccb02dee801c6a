"""Single-collateral vault: positions, minting against collateral, liquidation."""
from __future__ import annotations

import logging
from dataclasses import replace

from ..constants import ISSUER_NAME, ORACLE_NAME, PRICE_SOURCES, VAULT_NAME, WAD
from ..errors import (
    CollateralRatioError,
    InsufficientCollateralError,
    InsufficientDebtError,
    InvalidPriceError,
    InvariantError,
    NotLiquidatableError,
    SystemPausedError,
    ValidationError,
)
from ..events import EventLog
from ..guard import OperationGuard
from ..interfaces.clock import Clock
from ..interfaces.ledger import TokenLedger
from ..models import LiquidationPreview, Position
from ..ownership import Ownable
from ..resolver import DependencyCache, NameRegistry
from . import ratios

logger = logging.getLogger(__name__)


class CollateralVault:
    """Tracks per-account collateral and synthetic debt.

    Minting and withdrawing are checked against ``min_collateral_ratio`` using
    the spot collateral price. The liquidation check prices collateral from
    ``liquidation_price_source``: ``"spot"`` reads the live oracle price,
    ``"settlement"`` reads the delayed OSM price.
    """

    def __init__(
        self,
        owner: str,
        registry: NameRegistry,
        clock: Clock,
        collateral_token: TokenLedger,
        synthetic_key: str,
        min_collateral_ratio: int,
        liquidation_ratio: int,
        liquidation_penalty: int,
        liquidation_price_source: str = "spot",
        address: str = VAULT_NAME,
    ) -> None:
        self.address = address
        self.collateral_token = collateral_token
        self.synthetic_key = synthetic_key
        self._clock = clock
        self.events = EventLog(address, clock, logger)
        self.ownership = Ownable(owner, self.events)
        self.cache = DependencyCache(
            registry, self.required_names(), self.events, address
        )
        self._guard = OperationGuard(address)

        _check_ratio(min_collateral_ratio)
        _check_ratio(liquidation_ratio)
        _check_penalty(liquidation_penalty)
        _check_source(liquidation_price_source)
        self.min_collateral_ratio = min_collateral_ratio
        self.liquidation_ratio = liquidation_ratio
        self.liquidation_penalty = liquidation_penalty
        self.liquidation_price_source = liquidation_price_source

        self.is_active = True
        self.total_collateral = 0
        self.total_debt = 0
        self._positions: dict[str, Position] = {}

    # ------------------------------------------------------------------
    # Dependency cache
    # ------------------------------------------------------------------

    @staticmethod
    def required_names() -> tuple[str, ...]:
        return (ORACLE_NAME, ISSUER_NAME)

    def rebuild_cache(self) -> None:
        self.cache.rebuild()

    def is_cache_current(self) -> bool:
        return self.cache.is_current()

    # ------------------------------------------------------------------
    # Position views
    # ------------------------------------------------------------------

    def find_position(self, account: str) -> Position | None:
        """Stored position, or None for an account never seen by the vault."""
        return self._positions.get(account)

    def get_position(self, account: str) -> Position:
        return self._positions.get(account, Position())

    def accounts(self) -> tuple[str, ...]:
        return tuple(self._positions)

    async def _spot_collateral_price(self) -> int:
        return await self.cache.require(ORACLE_NAME).get_collateral_price()

    async def _settlement_collateral_price(self) -> int:
        oracle = self.cache.require(ORACLE_NAME)
        result = await oracle.get_settlement_price(oracle.collateral_key)
        if not result.is_valid:
            raise InvalidPriceError("Invalid collateral settlement price")
        return result.price

    async def _price_for(self, source: str) -> int:
        _check_source(source)
        if source == "spot":
            return await self._spot_collateral_price()
        return await self._settlement_collateral_price()

    async def get_collateral_value(self, account: str) -> int:
        price = await self._spot_collateral_price()
        return ratios.collateral_value(self.get_position(account).collateral, price)

    async def get_collateral_ratio(self, account: str, source: str | None = None) -> int:
        """Collateral ratio priced from ``source``.

        Defaults to ``liquidation_price_source``, the price ``is_liquidatable``
        reads.
        """
        position = self.get_position(account)
        if position.debt == 0:
            return ratios.collateral_ratio(position.collateral, 0, 0)
        price = await self._price_for(source or self.liquidation_price_source)
        return ratios.collateral_ratio(position.collateral, position.debt, price)

    async def max_mintable(self, account: str) -> int:
        position = self.get_position(account)
        price = await self._spot_collateral_price()
        return ratios.max_mintable(
            position.collateral, position.debt, price, self.min_collateral_ratio
        )

    async def is_liquidatable(self, account: str) -> bool:
        if self.get_position(account).debt == 0:
            return False
        return await self.get_collateral_ratio(account) < self.liquidation_ratio

    def preview_liquidation(self, account: str) -> LiquidationPreview:
        position = self.get_position(account)
        to_liquidator, penalty = ratios.liquidation_split(
            position.collateral, self.liquidation_penalty
        )
        return LiquidationPreview(
            debt_to_repay=position.debt,
            collateral_seized=position.collateral,
            collateral_to_liquidator=to_liquidator,
            penalty=penalty,
        )

    # ------------------------------------------------------------------
    # Internal bookkeeping
    # ------------------------------------------------------------------

    def _require_active(self) -> None:
        if not self.is_active:
            raise SystemPausedError("System is paused")

    def _store(
        self, account: str, position: Position, collateral_delta: int, debt_delta: int
    ) -> None:
        self._positions[account] = replace(position, last_update_time=self._clock.now())
        self.total_collateral += collateral_delta
        self.total_debt += debt_delta

    def _restore(
        self, account: str, previous: Position | None, totals: tuple[int, int]
    ) -> None:
        if previous is None:
            self._positions.pop(account, None)
        else:
            self._positions[account] = previous
        self.total_collateral, self.total_debt = totals

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    async def deposit(self, caller: str, amount: int) -> None:
        async with self._guard.enter("deposit"):
            self._require_active()
            _check_amount(amount)

            await self.collateral_token.transfer_from(
                self.address, caller, self.address, amount
            )

            position = self.get_position(caller)
            self._store(
                caller,
                replace(position, collateral=position.collateral + amount),
                amount,
                0,
            )
            self.events.emit("CollateralDeposited", account=caller, amount=amount)

    async def withdraw(self, caller: str, amount: int) -> None:
        async with self._guard.enter("withdraw"):
            self._require_active()
            _check_amount(amount)

            previous = self.find_position(caller)
            position = self.get_position(caller)
            if amount > position.collateral:
                raise InsufficientCollateralError("Insufficient collateral")

            remaining = position.collateral - amount
            if position.debt > 0:
                price = await self._spot_collateral_price()
                ratio = ratios.collateral_ratio(remaining, position.debt, price)
                if ratio < self.min_collateral_ratio:
                    raise CollateralRatioError("Would fall below minimum collateral ratio")

            totals = (self.total_collateral, self.total_debt)
            self._store(caller, replace(position, collateral=remaining), -amount, 0)
            try:
                await self.collateral_token.transfer(self.address, caller, amount)
            except Exception:
                self._restore(caller, previous, totals)
                raise
            self.events.emit("CollateralWithdrawn", account=caller, amount=amount)

    async def mint(self, caller: str, amount: int) -> None:
        async with self._guard.enter("mint"):
            self._require_active()
            _check_amount(amount)

            previous = self.find_position(caller)
            position = self.get_position(caller)
            new_debt = position.debt + amount
            price = await self._spot_collateral_price()
            ratio = ratios.collateral_ratio(position.collateral, new_debt, price)
            if ratio < self.min_collateral_ratio:
                raise CollateralRatioError("Would fall below minimum collateral ratio")

            issuer = self.cache.require(ISSUER_NAME)
            totals = (self.total_collateral, self.total_debt)
            self._store(caller, replace(position, debt=new_debt), 0, amount)
            try:
                await issuer.issue(self.address, self.synthetic_key, caller, amount)
            except Exception:
                self._restore(caller, previous, totals)
                raise
            self.events.emit("SyntheticMinted", account=caller, amount=amount)

    async def burn(self, caller: str, amount: int) -> None:
        async with self._guard.enter("burn"):
            self._require_active()
            _check_amount(amount)

            previous = self.find_position(caller)
            position = self.get_position(caller)
            if amount > position.debt:
                raise InsufficientDebtError("Burn amount exceeds debt")

            issuer = self.cache.require(ISSUER_NAME)
            totals = (self.total_collateral, self.total_debt)
            self._store(caller, replace(position, debt=position.debt - amount), 0, -amount)
            try:
                await issuer.burn(self.address, self.synthetic_key, caller, amount)
            except Exception:
                self._restore(caller, previous, totals)
                raise
            self.events.emit("SyntheticBurned", account=caller, amount=amount)

    async def liquidate(self, caller: str, account: str) -> LiquidationPreview:
        """Repay ``account``'s whole debt from the caller and seize its collateral.

        The caller receives the collateral minus the penalty; the penalty goes
        to the vault owner.
        """
        async with self._guard.enter("liquidate"):
            self._require_active()
            if caller == account:
                raise InvariantError("Cannot liquidate own position")
            if not await self.is_liquidatable(account):
                raise NotLiquidatableError("Position is not liquidatable")

            previous = self.find_position(account)
            outcome = self.preview_liquidation(account)
            custody = self.collateral_token.balance_of(self.address)
            if custody < outcome.collateral_seized:
                raise InsufficientCollateralError("Vault custody below seized collateral")

            issuer = self.cache.require(ISSUER_NAME)
            admin = self.ownership.owner
            totals = (self.total_collateral, self.total_debt)
            self._store(
                account,
                Position(),
                -outcome.collateral_seized,
                -outcome.debt_to_repay,
            )

            try:
                await issuer.burn(
                    self.address, self.synthetic_key, caller, outcome.debt_to_repay
                )
            except Exception:
                self._restore(account, previous, totals)
                raise

            # A liquidator transfer that lands before a failed penalty transfer is
            # not reversed; the custody check above keeps that path unreachable
            # for ledgers whose transfers only fail on balance.
            try:
                if outcome.collateral_to_liquidator > 0:
                    await self.collateral_token.transfer(
                        self.address, caller, outcome.collateral_to_liquidator
                    )
                if outcome.penalty > 0:
                    await self.collateral_token.transfer(
                        self.address, admin, outcome.penalty
                    )
            except Exception:
                logger.error("Collateral payout failed liquidating %s; rolling back", account)
                await issuer.issue(
                    self.address, self.synthetic_key, caller, outcome.debt_to_repay
                )
                self._restore(account, previous, totals)
                raise

            self.events.emit(
                "PositionLiquidated",
                account=account,
                liquidator=caller,
                debt=outcome.debt_to_repay,
                collateral_to_liquidator=outcome.collateral_to_liquidator,
                penalty=outcome.penalty,
            )
            return outcome

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def _update_parameter(self, name: str, value: int) -> None:
        old = getattr(self, name)
        setattr(self, name, value)
        self.events.emit("RiskParameterUpdated", parameter=name, old=old, new=value)

    def set_min_collateral_ratio(self, caller: str, value: int) -> None:
        self.ownership.require_owner(caller)
        _check_ratio(value)
        self._update_parameter("min_collateral_ratio", value)

    def set_liquidation_ratio(self, caller: str, value: int) -> None:
        self.ownership.require_owner(caller)
        _check_ratio(value)
        self._update_parameter("liquidation_ratio", value)

    def set_liquidation_penalty(self, caller: str, value: int) -> None:
        self.ownership.require_owner(caller)
        _check_penalty(value)
        self._update_parameter("liquidation_penalty", value)

    def set_liquidation_price_source(self, caller: str, source: str) -> None:
        self.ownership.require_owner(caller)
        _check_source(source)
        old = self.liquidation_price_source
        self.liquidation_price_source = source
        self.events.emit(
            "RiskParameterUpdated",
            parameter="liquidation_price_source",
            old=old,
            new=source,
        )

    def set_active(self, caller: str, active: bool) -> None:
        self.ownership.require_owner(caller)
        self.is_active = active
        self.events.emit("SystemUnpaused" if active else "SystemPaused")


def _check_amount(amount: int) -> None:
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")


def _check_ratio(value: int) -> None:
    if value <= 0:
        raise ValidationError("Ratio must be greater than 0")


def _check_penalty(value: int) -> None:
    if value < 0 or value >= WAD:
        raise ValidationError("Penalty must be in [0, 1)")


def _check_source(source: str) -> None:
    if source not in PRICE_SOURCES:
        raise ValidationError(f"Unknown price source '{source}'")
