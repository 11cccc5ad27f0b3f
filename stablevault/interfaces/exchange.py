"""Exchange router protocol — external routing service abstraction."""
from typing import Protocol


class ExchangeRouter(Protocol):
    """Abstract interface for the external routing service."""

    async def has_route(self, asset_in: str, asset_out: str) -> bool: ...

    async def get_amount_out(
        self, asset_in: str, asset_out: str, amount_in: int
    ) -> int: ...

    async def swap_exact_in(
        self,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
    ) -> int: ...
