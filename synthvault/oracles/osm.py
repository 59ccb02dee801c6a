"""Pure transitions of the delayed settlement price without I/O or a clock.

A key moves Empty → Bootstrapped (current set) ⇄ Staged (pending set).
A pending price becomes current once ``now >= next_timestamp``.
"""
from __future__ import annotations

from dataclasses import replace

from ..models import SettlementState


def is_due(state: SettlementState, now: int) -> bool:
    return state.has_next and now >= state.next_timestamp


def initialize(price: int, now: int) -> SettlementState:
    """Set the current price directly and drop any pending stage."""
    return SettlementState(current_price=price, current_timestamp=now)


def activate(state: SettlementState) -> SettlementState:
    """Promote the pending price; the caller checks that it is due."""
    return SettlementState(
        current_price=state.next_price,
        current_timestamp=state.next_timestamp,
    )


def stage(state: SettlementState, price: int, now: int, delay: int) -> SettlementState:
    return replace(
        state, next_price=price, next_timestamp=now + delay, has_next=True
    )


def poke(
    state: SettlementState, spot_price: int, now: int, delay: int
) -> tuple[SettlementState, bool, bool]:
    """Activate a due stage, then open a new one if none is pending.

    Returns (new_state, activated, staged).
    """
    activated = False
    if is_due(state, now):
        state = activate(state)
        activated = True

    staged = False
    if not state.has_next:
        state = stage(state, spot_price, now, delay)
        staged = True

    return state, activated, staged


def effective(state: SettlementState, now: int) -> tuple[int, int]:
    """Price in force at ``now`` and the timestamp its staleness counts from.

    A due stage is reported as if activated without changing ``state``.
    """
    if is_due(state, now):
        return state.next_price, state.next_timestamp
    return state.current_price, state.current_timestamp
