"""Service modules"""
from .deployment import Protocol, deploy
from .keeper import Keeper

__all__ = ["Keeper", "Protocol", "deploy"]
