"""Price oracle, delayed settlement price and external references."""
from .price_oracle import PriceOracle
from .pyth import PythPriceReference

__all__ = ["PriceOracle", "PythPriceReference"]
