"""Price oracle adapter — validated quotes only."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..errors import OracleError
from ..interfaces.price_oracle import PriceSource
from ..models import PriceQuote

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 3600


class PriceOracleAdapter:
    """Query a price source and reject non-positive or stale quotes.

    A quote is fresh while ``now - as_of <= max_age_seconds``.
    """

    def __init__(
        self,
        source: PriceSource,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self.max_age_seconds = max_age_seconds
        self._clock = clock

    async def get_price(self, oracle_ref: str) -> PriceQuote:
        if not oracle_ref:
            raise OracleError("Asset has no oracle reference")

        quotes = await self._source.fetch_quotes([oracle_ref])
        quote = quotes.get(oracle_ref)
        if quote is None:
            raise OracleError(f"No price available for '{oracle_ref}'")

        if quote.price <= 0:
            logger.warning("Rejected non-positive price %d for %s", quote.price, oracle_ref)
            raise OracleError(f"Invalid price {quote.price} for '{oracle_ref}'")

        age = int(self._clock()) - quote.as_of
        if age > self.max_age_seconds:
            logger.warning(
                "Rejected stale price for %s (age %ds > %ds)",
                oracle_ref, age, self.max_age_seconds,
            )
            raise OracleError(
                f"Stale price for '{oracle_ref}': {age}s old, limit {self.max_age_seconds}s"
            )

        return quote
