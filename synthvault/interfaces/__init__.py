"""Protocol interfaces for external collaborators."""
from .clock import Clock
from .ledger import TokenLedger
from .price_reference import PriceReference

__all__ = ["Clock", "PriceReference", "TokenLedger"]
