"""Routing service client over JSON-RPC."""
from __future__ import annotations

import logging

from ..rpc import JsonRpcClient

logger = logging.getLogger(__name__)


class RouterClient:
    """Query and execute swaps on the external routing service.

    Amounts travel as decimal strings so no precision is lost in JSON.
    """

    def __init__(self, client: JsonRpcClient) -> None:
        self._client = client

    async def has_route(self, asset_in: str, asset_out: str) -> bool:
        """Whether a swap path exists (False when the service is unreachable)."""
        try:
            result = await self._client.rpc_call("router_hasRoute", [asset_in, asset_out])
            return bool(result)
        except Exception as e:
            logger.error("Error checking route %s -> %s: %s", asset_in, asset_out, e)
            return False

    async def get_amount_out(self, asset_in: str, asset_out: str, amount_in: int) -> int:
        result = await self._client.rpc_call(
            "router_getAmountOut", [asset_in, asset_out, str(amount_in)]
        )
        return int(result)

    async def swap_exact_in(
        self,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
    ) -> int:
        result = await self._client.rpc_call(
            "router_swapExactIn",
            [
                asset_in,
                asset_out,
                str(amount_in),
                str(min_amount_out),
                recipient,
                deadline,
            ],
        )
        return int(result["amountOut"])
