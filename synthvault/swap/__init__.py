"""Oracle-priced exchange between synthetic assets."""
from .engine import SwapEngine

__all__ = ["SwapEngine"]
