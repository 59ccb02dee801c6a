"""Synthetic-asset vault protocol: collateral vault, issuer, OSM oracle and swap."""
from .constants import WAD
from .issuer import Issuer
from .oracles import PriceOracle
from .resolver import NameRegistry
from .swap import SwapEngine
from .tokens import SyntheticToken
from .vault import CollateralVault

__version__ = "0.1.0"

__all__ = [
    "CollateralVault",
    "Issuer",
    "NameRegistry",
    "PriceOracle",
    "SwapEngine",
    "SyntheticToken",
    "WAD",
]
