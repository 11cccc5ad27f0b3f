"""Custody transfer modules."""
from .payout import CustodyPayout

__all__ = ["CustodyPayout"]
