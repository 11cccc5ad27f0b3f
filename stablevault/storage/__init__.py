"""State persistence."""
from .json_store import JsonStateStore

__all__ = ["JsonStateStore"]
