"""Pyth Network price source."""
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..models import PriceQuote

logger = logging.getLogger(__name__)


class PythOracle:
    """Fetch raw quotes from the Pyth Hermes API."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)

    def feed_id(self, ref: str) -> str:
        """Resolve an oracle reference (alias or raw feed id) to a feed id."""
        feed_id = self.price_feeds.get(ref, ref)
        return feed_id.lower().removeprefix("0x")

    async def fetch_quotes(self, refs: list[str]) -> dict[str, PriceQuote]:
        """Fetch the latest quote for each oracle reference.

        References whose feed is missing from the response, and every
        reference on transport failure, are absent from the result.
        """
        quotes: dict[str, PriceQuote] = {}

        # Reverse mapping from feed ID to the references that asked for it
        id_to_refs: dict[str, list[str]] = {}
        for ref in refs:
            id_to_refs.setdefault(self.feed_id(ref), []).append(ref)

        if not id_to_refs:
            return quotes

        query_params = "&".join([f"ids[]={fid}" for fid in id_to_refs])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return quotes

                    data = await response.json()
                    for item in data.get("parsed", []):
                        feed_id = str(item.get("id", "")).lower().removeprefix("0x")
                        if feed_id not in id_to_refs:
                            continue

                        price_data = item.get("price", {})
                        price = int(price_data.get("price", 0))
                        expo = int(price_data.get("expo", 0))
                        publish_time = int(price_data.get("publish_time", 0))

                        for ref in id_to_refs[feed_id]:
                            quotes[ref] = PriceQuote(
                                ref=ref, price=price, expo=expo, as_of=publish_time
                            )
                            logger.debug(
                                "Pyth %s: %d x 10^%d @ %d", ref, price, expo, publish_time
                            )

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)

        return quotes
