"""Price oracle modules."""
from .adapter import PriceOracleAdapter
from .pyth import PythOracle

__all__ = ["PriceOracleAdapter", "PythOracle"]
