"""Asset registry — accepted assets, their precision and oracle reference."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ..config import AssetSpecConfig
from ..errors import AlreadyRegistered, NotRegistered
from ..exchange import ExchangeAdapter
from ..models import AssetConfig

logger = logging.getLogger(__name__)


class AssetRegistry:
    """Key-value table of supported assets.

    The accounting unit and the native reference asset are built in: always
    supported and routable, never stored as entries.
    """

    def __init__(
        self,
        exchange: ExchangeAdapter,
        accounting_unit: AssetSpecConfig,
        native_asset: AssetSpecConfig,
        assets: Iterable[AssetConfig] = (),
    ) -> None:
        self._exchange = exchange
        self.accounting_unit = accounting_unit
        self.native_asset = native_asset
        self._assets: dict[str, AssetConfig] = {}
        for entry in assets:
            self._assets[entry.asset] = entry

    def _builtin(self, asset: str) -> AssetSpecConfig | None:
        if asset == self.accounting_unit.asset:
            return self.accounting_unit
        if asset == self.native_asset.asset:
            return self.native_asset
        return None

    def register(self, asset: str, precision: int, oracle_ref: str) -> AssetConfig:
        if self._builtin(asset) is not None or asset in self._assets:
            raise AlreadyRegistered(f"Asset '{asset}' is already registered")
        if precision < 0:
            raise ValueError("precision must be non-negative")

        entry = AssetConfig(
            asset=asset, supported=True, precision=precision, oracle_ref=oracle_ref
        )
        self._assets[asset] = entry
        logger.info("Registered asset %s (precision %d, oracle %s)", asset, precision, oracle_ref)
        return entry

    def unregister(self, asset: str) -> None:
        """Remove support for ``asset``; outstanding balances are not inspected."""
        if asset not in self._assets:
            raise NotRegistered(f"Asset '{asset}' is not registered")
        del self._assets[asset]
        logger.info("Unregistered asset %s", asset)

    def is_supported(self, asset: str) -> bool:
        return self._builtin(asset) is not None or asset in self._assets

    async def has_route(self, asset: str) -> bool:
        if self._builtin(asset) is not None:
            return True
        return await self._exchange.has_route(asset)

    def get(self, asset: str) -> AssetConfig:
        """Config for ``asset``; unsupported assets report ``supported=False``."""
        builtin = self._builtin(asset)
        if builtin is not None:
            return AssetConfig(
                asset=asset,
                supported=True,
                precision=builtin.decimals,
                oracle_ref=builtin.oracle_ref,
            )
        return self._assets.get(asset, AssetConfig(asset=asset, supported=False))

    def assets(self) -> tuple[AssetConfig, ...]:
        """Registered (non built-in) entries, in registration order."""
        return tuple(self._assets.values())
