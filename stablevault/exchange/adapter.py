"""Exchange adapter — bounded-slippage conversion into the accounting unit."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..errors import ExchangeFailed, NoRoute, SlippageExceeded
from ..interfaces.exchange import ExchangeRouter

logger = logging.getLogger(__name__)


class ExchangeAdapter:
    """Convert assets into the accounting unit through the routing service."""

    def __init__(
        self,
        router: ExchangeRouter,
        accounting_unit: str,
        recipient: str,
        deadline_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._router = router
        self.accounting_unit = accounting_unit
        self.recipient = recipient
        self.deadline_seconds = deadline_seconds
        self._clock = clock

    async def has_route(self, asset_in: str, asset_out: str | None = None) -> bool:
        asset_out = asset_out or self.accounting_unit
        if asset_in == asset_out:
            return True
        return await self._router.has_route(asset_in, asset_out)

    async def quote(
        self, asset_in: str, amount_in: int, asset_out: str | None = None
    ) -> int:
        """Router estimate of the output for ``amount_in``; no custody moves."""
        asset_out = asset_out or self.accounting_unit
        if asset_in == asset_out:
            return amount_in
        if not await self._router.has_route(asset_in, asset_out):
            raise NoRoute(f"No route from {asset_in} to {asset_out}")
        try:
            return await self._router.get_amount_out(asset_in, asset_out, amount_in)
        except Exception as e:
            raise ExchangeFailed(f"Quote {asset_in} -> {asset_out} failed: {e}") from e

    async def convert(self, asset_in: str, amount_in: int, min_amount_out: int) -> int:
        """Swap ``amount_in`` of ``asset_in`` and return the confirmed output.

        Raises SlippageExceeded when the confirmed output is below
        ``min_amount_out``; the shortfall amount is attached as ``amount_out``.
        """
        if not await self._router.has_route(asset_in, self.accounting_unit):
            raise NoRoute(f"No route from {asset_in} to {self.accounting_unit}")

        deadline = int(self._clock()) + self.deadline_seconds
        try:
            amount_out = await self._router.swap_exact_in(
                asset_in,
                self.accounting_unit,
                amount_in,
                min_amount_out,
                self.recipient,
                deadline,
            )
        except Exception as e:
            logger.error("Swap %s %s failed: %s", amount_in, asset_in, e)
            raise ExchangeFailed(f"Swap of {asset_in} failed: {e}") from e

        if amount_out < min_amount_out:
            raise SlippageExceeded(
                f"Received {amount_out}, minimum {min_amount_out}",
                amount_out=amount_out,
            )

        logger.info(
            "Swapped %d %s -> %d %s (min %d)",
            amount_in, asset_in, amount_out, self.accounting_unit, min_amount_out,
        )
        return amount_out
