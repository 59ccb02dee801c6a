"""Pure fixed-point ratio arithmetic for positions."""
from __future__ import annotations

from ..constants import MAX_RATIO, WAD


def wad_mul(a: int, b: int) -> int:
    return a * b // WAD


def collateral_value(collateral: int, price: int) -> int:
    """Value of ``collateral`` units at ``price`` (both 18 decimals)."""
    return wad_mul(collateral, price)


def collateral_ratio(collateral: int, debt: int, price: int) -> int:
    """collateral value / debt; MAX_RATIO for debt-free positions."""
    if debt == 0:
        return MAX_RATIO
    return collateral_value(collateral, price) * WAD // debt


def max_mintable(collateral: int, debt: int, price: int, min_ratio: int) -> int:
    """Additional debt the position can take before hitting ``min_ratio``."""
    ceiling = collateral_value(collateral, price) * WAD // min_ratio
    return max(ceiling - debt, 0)


def liquidation_split(collateral: int, penalty_rate: int) -> tuple[int, int]:
    """Split seized collateral into (to_liquidator, penalty)."""
    penalty = wad_mul(collateral, penalty_rate)
    return collateral - penalty, penalty
