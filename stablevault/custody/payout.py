"""Custody payout client — transfers custodied assets to depositors."""
import logging

from ..errors import PayoutFailed
from ..rpc import JsonRpcClient

logger = logging.getLogger(__name__)


class CustodyPayout:
    """Send outbound transfers through the custody service."""

    def __init__(self, client: JsonRpcClient, address: str) -> None:
        self._client = client
        self.address = address

    async def transfer(self, asset: str, recipient: str, amount: int) -> None:
        try:
            result = await self._client.rpc_call(
                "custody_transfer", [self.address, asset, recipient, str(amount)]
            )
        except Exception as e:
            logger.error("Payout of %d %s to %s failed: %s", amount, asset, recipient, e)
            raise PayoutFailed(f"Transfer to {recipient} failed: {e}") from e

        logger.info("Paid out %d %s to %s (tx %s)", amount, asset, recipient, result)
