"""Exception hierarchy shared by every protocol component."""
from __future__ import annotations


class ProtocolError(Exception):
    """Base class for all rejected protocol operations."""


class ValidationError(ProtocolError, ValueError):
    """Malformed input: zero amounts, length mismatches, unknown keys."""


class AuthorizationError(ProtocolError, PermissionError):
    """Caller lacks the role required by the operation."""


class InvariantError(ProtocolError):
    """An economically load-bearing check refused the operation."""


class CollateralRatioError(InvariantError):
    """Operation would leave a position below the minimum collateral ratio."""


class InsufficientCollateralError(InvariantError):
    pass


class InsufficientDebtError(InvariantError):
    pass


class NotLiquidatableError(InvariantError):
    pass


class SystemPausedError(InvariantError):
    pass


class NonZeroSupplyError(InvariantError):
    pass


class InsufficientBalanceError(ProtocolError):
    """Token ledger balance or allowance too small."""


class MissingDependencyError(ProtocolError, LookupError):
    """A required registry name is not resolvable."""

    def __init__(self, name: str, reason: str = "") -> None:
        self.name = name
        super().__init__(reason or f"Missing address: {name}")


class InvalidPriceError(ProtocolError):
    """Price is zero, stale or otherwise unusable."""


class PriceReferenceError(ProtocolError):
    """External price reference call failed."""


class ReentrancyError(ProtocolError, RuntimeError):
    """Operation re-entered before the previous call completed."""


class SlippageError(InvariantError):
    """Executed swap output fell below the caller's minimum."""
