"""Collateral vault and its ratio arithmetic."""
from .collateral_vault import PRICE_SOURCES, CollateralVault

__all__ = ["CollateralVault", "PRICE_SOURCES"]
