"""Fungible token ledgers."""
from .synthetic_token import SyntheticToken

__all__ = ["SyntheticToken"]
