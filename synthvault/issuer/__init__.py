"""Synthetic asset registry and minting gate."""
from .issuer import Issuer

__all__ = ["Issuer"]
