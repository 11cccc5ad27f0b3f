"""Price source protocol — raw price feed abstraction."""
from typing import Protocol

from ..models import PriceQuote


class PriceSource(Protocol):
    """Abstract interface for fetching raw oracle quotes."""

    async def fetch_quotes(self, refs: list[str]) -> dict[str, PriceQuote]: ...
