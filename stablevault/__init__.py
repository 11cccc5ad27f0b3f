"""Custodial multi-asset bank normalizing deposits into one accounting unit."""

__version__ = "0.1.0"
