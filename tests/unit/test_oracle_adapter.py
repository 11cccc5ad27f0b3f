"""Unit tests for quote validation — positivity and freshness."""
from __future__ import annotations

import pytest

from stablevault.errors import OracleError
from stablevault.oracles import PriceOracleAdapter

NOW = 1_700_000_000


@pytest.fixture()
def adapter(price_source, clock) -> PriceOracleAdapter:
    return PriceOracleAdapter(price_source, max_age_seconds=3600, clock=clock)


class TestGetPrice:
    @pytest.mark.asyncio
    async def test_returns_fresh_quote(self, adapter, price_source) -> None:
        quote = await adapter.get_price("ETH")
        assert quote.price == 2000 * 10**8
        assert quote.expo == -8
        assert price_source.calls == [["ETH"]]

    @pytest.mark.asyncio
    async def test_age_exactly_at_threshold_accepted(self, adapter, price_source) -> None:
        price_source.set_price("ETH", 2000 * 10**8, as_of=NOW - 3600)
        quote = await adapter.get_price("ETH")
        assert quote.as_of == NOW - 3600

    @pytest.mark.asyncio
    async def test_one_second_past_threshold_rejected(self, adapter, price_source) -> None:
        price_source.set_price("ETH", 2000 * 10**8, as_of=NOW - 3601)
        with pytest.raises(OracleError, match="Stale"):
            await adapter.get_price("ETH")

    @pytest.mark.asyncio
    async def test_clock_advancing_makes_quote_stale(self, adapter, clock) -> None:
        clock.now = NOW + 3601
        with pytest.raises(OracleError):
            await adapter.get_price("ETH")

    @pytest.mark.asyncio
    async def test_future_quote_accepted(self, adapter, price_source) -> None:
        price_source.set_price("ETH", 2000 * 10**8, as_of=NOW + 5)
        assert (await adapter.get_price("ETH")).as_of == NOW + 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [0, -1])
    async def test_non_positive_price_rejected(self, adapter, price_source, price) -> None:
        price_source.set_price("ETH", price)
        with pytest.raises(OracleError, match="Invalid price"):
            await adapter.get_price("ETH")

    @pytest.mark.asyncio
    async def test_missing_feed_rejected(self, adapter) -> None:
        with pytest.raises(OracleError, match="No price"):
            await adapter.get_price("DOGE")

    @pytest.mark.asyncio
    async def test_empty_reference_rejected(self, adapter, price_source) -> None:
        with pytest.raises(OracleError):
            await adapter.get_price("")
        assert price_source.calls == []
