"""Payout gateway protocol — outbound custody transfers."""
from typing import Protocol


class PayoutGateway(Protocol):
    """Abstract interface for transferring custodied assets out."""

    async def transfer(self, asset: str, recipient: str, amount: int) -> None: ...
