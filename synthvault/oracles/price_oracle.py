"""Spot price feeds plus the delayed settlement price (OSM) per key."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from ..constants import (
    COLLATERAL_KEY,
    NATIVE_KEY,
    ORACLE_NAME,
    OSM_DELAY,
    STALE_PERIOD,
    WAD,
)
from ..errors import InvalidPriceError, PriceReferenceError, ValidationError
from ..events import EventLog
from ..interfaces.clock import Clock
from ..interfaces.price_reference import PriceReference
from ..models import (
    OSMStatus,
    PendingActivation,
    PriceFeed,
    PriceResult,
    SettlementState,
)
from ..ownership import Ownable
from . import osm

logger = logging.getLogger(__name__)

_INVALID = PriceResult(0, False)


def normalize_decimals(answer: int, decimals: int) -> int:
    """Rescale an integer answer with ``decimals`` places to 18 places."""
    if decimals < 18:
        return answer * 10 ** (18 - decimals)
    if decimals > 18:
        return answer // 10 ** (decimals - 18)
    return answer


class PriceOracle:
    """Spot prices (manual or aggregator-backed) and delayed settlement prices.

    The native unit is fixed at parity and cannot be configured.
    """

    def __init__(
        self,
        owner: str,
        clock: Clock,
        native_key: str = NATIVE_KEY,
        collateral_key: str = COLLATERAL_KEY,
        stale_period: int = STALE_PERIOD,
        osm_delay: int = OSM_DELAY,
        osm_enabled: bool = True,
        address: str = ORACLE_NAME,
    ) -> None:
        self.address = address
        self.native_key = native_key
        self.collateral_key = collateral_key
        self.stale_period = stale_period
        self.osm_delay = osm_delay
        self.osm_enabled = osm_enabled
        self._clock = clock
        self.events = EventLog(address, clock, logger)
        self.ownership = Ownable(owner, self.events)
        self._feeds: dict[str, PriceFeed] = {}
        self._osm: dict[str, SettlementState] = {}

    # ------------------------------------------------------------------
    # Spot prices
    # ------------------------------------------------------------------

    def get_feed(self, key: str) -> PriceFeed | None:
        return self._feeds.get(key)

    def _is_fresh(self, timestamp: int) -> bool:
        return self._clock.now() - timestamp <= self.stale_period

    async def get_price(self, key: str) -> PriceResult:
        """Live price of ``key`` and whether it is usable."""
        if key == self.native_key:
            return PriceResult(WAD, True)

        feed = self._feeds.get(key, PriceFeed())
        if feed.use_manual or feed.aggregator is None:
            price = feed.manual_price
            return PriceResult(price, price > 0 and self._is_fresh(feed.last_update))

        return await self._read_aggregator(key, feed)

    async def _read_aggregator(self, key: str, feed: PriceFeed) -> PriceResult:
        try:
            round_data = await feed.aggregator.latest_round_data()
        except Exception as e:
            logger.warning("Price reference for %s failed: %s", key, e)
            return _INVALID

        answer = round_data.answer
        if answer <= 0:
            logger.warning("Price reference for %s returned %s", key, answer)
            return _INVALID
        if not self._is_fresh(round_data.updated_at):
            logger.warning(
                "Price reference for %s is stale (updated_at=%s)",
                key,
                round_data.updated_at,
            )
            return PriceResult(answer, False)

        return PriceResult(normalize_decimals(answer, feed.decimals), True)

    async def get_collateral_price(self) -> int:
        result = await self.get_price(self.collateral_key)
        if not result.is_valid:
            raise InvalidPriceError("Invalid collateral price")
        return result.price

    # ------------------------------------------------------------------
    # Spot configuration (owner only)
    # ------------------------------------------------------------------

    def _require_configurable(self, key: str) -> None:
        if key == self.native_key:
            raise ValidationError(f"Cannot configure the {self.native_key} price")

    async def add_aggregator(
        self, caller: str, key: str, aggregator: PriceReference
    ) -> None:
        self.ownership.require_owner(caller)
        self._require_configurable(key)
        try:
            decimals = int(await aggregator.decimals())
        except Exception as e:
            raise PriceReferenceError(
                f"Price reference for {key} rejected decimals(): {e}"
            ) from e

        feed = self._feeds.get(key, PriceFeed())
        self._feeds[key] = replace(
            feed, aggregator=aggregator, decimals=decimals, use_manual=False
        )
        self.events.emit("AggregatorAdded", key=key, decimals=decimals)

    def remove_aggregator(self, caller: str, key: str) -> None:
        self.ownership.require_owner(caller)
        self._require_configurable(key)
        if key not in self._feeds:
            raise ValidationError(f"No price feed for {key}")
        del self._feeds[key]
        self._osm.pop(key, None)
        self.events.emit("AggregatorRemoved", key=key)

    def set_manual_price(self, caller: str, key: str, price: int) -> None:
        self.ownership.require_owner(caller)
        self._require_configurable(key)
        if price <= 0:
            raise ValidationError("Price must be greater than 0")
        feed = self._feeds.get(key, PriceFeed())
        self._feeds[key] = replace(
            feed, manual_price=price, last_update=self._clock.now(), use_manual=True
        )
        self.events.emit("ManualPriceUpdated", key=key, price=price)

    def set_use_manual(self, caller: str, key: str, use_manual: bool) -> None:
        self.ownership.require_owner(caller)
        self._require_configurable(key)
        feed = self._feeds.get(key, PriceFeed())
        if not use_manual and feed.aggregator is None:
            raise ValidationError(f"No aggregator configured for {key}")
        self._feeds[key] = replace(feed, use_manual=use_manual)

    # ------------------------------------------------------------------
    # Delayed settlement price
    # ------------------------------------------------------------------

    def get_osm_state(self, key: str) -> SettlementState | None:
        return self._osm.get(key)

    def set_osm_enabled(self, caller: str, enabled: bool) -> None:
        self.ownership.require_owner(caller)
        self.osm_enabled = enabled
        self.events.emit("OSMEnabledToggled", enabled=enabled)

    def initialize_osm(self, caller: str, key: str, price: int) -> None:
        """Bootstrap the current settlement price without delay."""
        self.ownership.require_owner(caller)
        self._require_configurable(key)
        if price <= 0:
            raise ValidationError("Price must be greater than 0")
        now = self._clock.now()
        self._osm[key] = osm.initialize(price, now)
        self.events.emit("OSMPriceInitialized", key=key, price=price, timestamp=now)

    async def poke(self, key: str) -> SettlementState:
        """Stage the live spot price behind the delay, activating a due stage."""
        self._require_configurable(key)
        spot = await self.get_price(key)
        if not spot.is_valid:
            raise InvalidPriceError(f"Invalid spot price for {key}")
        return self._apply_poke(key, spot.price)

    def _apply_poke(self, key: str, spot_price: int) -> SettlementState:
        now = self._clock.now()
        state = self._osm.get(key, SettlementState())
        new_state, activated, staged = osm.poke(state, spot_price, now, self.osm_delay)
        self._osm[key] = new_state

        if activated:
            self.events.emit(
                "OSMPriceActivated",
                key=key,
                price=new_state.current_price,
                timestamp=new_state.current_timestamp,
            )
        if staged:
            self.events.emit(
                "OSMPriceQueued",
                key=key,
                price=new_state.next_price,
                activates_at=new_state.next_timestamp,
            )
        return new_state

    async def poke_many(self, keys: Iterable[str]) -> list[str]:
        """Poke each key, skipping those without a usable spot price."""
        poked: list[str] = []
        for key in keys:
            if key == self.native_key:
                continue
            spot = await self.get_price(key)
            if not spot.is_valid:
                logger.warning("Skipping poke for %s: invalid spot price", key)
                continue
            self._apply_poke(key, spot.price)
            poked.append(key)
        return poked

    def activate(self, key: str) -> SettlementState:
        """Force a due stage to become current."""
        state = self._osm.get(key)
        if state is None or not state.has_next:
            raise ValidationError(f"No pending price for {key}")
        if not osm.is_due(state, self._clock.now()):
            raise ValidationError(f"Pending price for {key} is not yet due")

        new_state = osm.activate(state)
        self._osm[key] = new_state
        self.events.emit(
            "OSMPriceActivated",
            key=key,
            price=new_state.current_price,
            timestamp=new_state.current_timestamp,
        )
        return new_state

    async def get_settlement_price(self, key: str) -> PriceResult:
        """Delayed price used for settlement; spot when OSM is off or unset."""
        if key == self.native_key:
            return PriceResult(WAD, True)
        if not self.osm_enabled:
            return await self.get_price(key)

        state = self._osm.get(key)
        if state is not None:
            price, since = osm.effective(state, self._clock.now())
            if price > 0:
                return PriceResult(price, self._is_fresh(since))

        return await self.get_price(key)

    async def get_osm_status(self, key: str) -> OSMStatus:
        spot = await self.get_price(key)
        state = self._osm.get(key, SettlementState())
        now = self._clock.now()

        current, _ = osm.effective(state, now)
        pending = state.has_next and not osm.is_due(state, now)
        return OSMStatus(
            current_price=current,
            next_price=state.next_price if pending else 0,
            next_timestamp=state.next_timestamp if pending else 0,
            spot_price=spot.price,
            spot_valid=spot.is_valid,
        )

    def check_pending_activation(self, key: str, window: int) -> PendingActivation:
        """Whether a pending price becomes due within ``window`` seconds."""
        state = self._osm.get(key)
        if state is None or not state.has_next:
            return PendingActivation(False, 0, 0)

        remaining = max(state.next_timestamp - self._clock.now(), 0)
        return PendingActivation(remaining <= window, state.next_price, remaining)
