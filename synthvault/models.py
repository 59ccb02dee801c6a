"""Data models, all frozen."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Position:
    """One account's collateral and debt inside a vault."""

    collateral: int = 0
    debt: int = 0
    last_update_time: int = 0

    @property
    def is_empty(self) -> bool:
        return self.collateral == 0 and self.debt == 0


@dataclass(frozen=True)
class PriceResult:
    """Price read with its validity flag."""

    price: int
    is_valid: bool


@dataclass(frozen=True)
class RoundData:
    """Latest answer reported by an external price reference."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True)
class PriceFeed:
    """Spot price configuration for one key."""

    aggregator: Any = None
    decimals: int = 18
    manual_price: int = 0
    last_update: int = 0
    use_manual: bool = True


@dataclass(frozen=True)
class SettlementState:
    """Delayed settlement price: current value plus at most one pending stage."""

    current_price: int = 0
    current_timestamp: int = 0
    next_price: int = 0
    next_timestamp: int = 0
    has_next: bool = False


@dataclass(frozen=True)
class OSMStatus:
    """Diagnostic snapshot of a key's delayed price."""

    current_price: int
    next_price: int
    next_timestamp: int
    spot_price: int
    spot_valid: bool


@dataclass(frozen=True)
class PendingActivation:
    will_activate: bool
    price: int
    time_remaining: int


@dataclass(frozen=True)
class SwapQuote:
    out_amount: int
    fee_amount: int


@dataclass(frozen=True)
class LiquidationPreview:
    """Outcome of liquidating an account at current parameters."""

    debt_to_repay: int
    collateral_seized: int
    collateral_to_liquidator: int
    penalty: int


@dataclass(frozen=True)
class PositionReport:
    """Keeper view of one account."""

    account: str
    collateral: int
    debt: int
    collateral_ratio: int
    collateral_value: int
    liquidatable: bool
    reward: int = 0


@dataclass(frozen=True)
class Event:
    """Audit record of one state transition."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0
