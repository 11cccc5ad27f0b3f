"""Service modules"""
from .bank import BankEngine
from .factory import build_engine
from .ledger import Ledger
from .registry import AssetRegistry

__all__ = ["AssetRegistry", "BankEngine", "Ledger", "build_engine"]
