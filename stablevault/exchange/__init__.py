"""Exchange routing modules."""
from .adapter import ExchangeAdapter
from .router import RouterClient

__all__ = ["ExchangeAdapter", "RouterClient"]
