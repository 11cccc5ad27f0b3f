"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetSpecConfig:
    asset: str = ""
    decimals: int = 0
    oracle_ref: str = ""


@dataclass(frozen=True)
class BankConfig:
    admin: str = ""
    max_cap: int = 0
    slippage_bps: int = 500
    swap_deadline_seconds: int = 300
    state_path: str = "bank_state.json"
    accounting_unit: AssetSpecConfig = field(
        default_factory=lambda: AssetSpecConfig(asset="USDC", decimals=6)
    )
    native_asset: AssetSpecConfig = field(
        default_factory=lambda: AssetSpecConfig(asset="ETH", decimals=18)
    )


@dataclass(frozen=True)
class RpcConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class CustodyConfig:
    address: str = ""
    rpc: RpcConfig = field(default_factory=RpcConfig)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    max_age_seconds: int = 3600
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    bank: BankConfig = field(default_factory=BankConfig)
    assets: tuple[AssetSpecConfig, ...] = ()
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    router: RpcConfig = field(default_factory=RpcConfig)
    custody: CustodyConfig = field(default_factory=CustodyConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_asset_spec(raw: dict[str, Any], default: AssetSpecConfig) -> AssetSpecConfig:
    return AssetSpecConfig(
        asset=str(raw.get("asset", default.asset)),
        decimals=int(raw.get("decimals", default.decimals)),
        oracle_ref=str(raw.get("oracle_ref", default.oracle_ref)),
    )


def _build_bank(raw: dict[str, Any]) -> BankConfig:
    defaults = BankConfig()
    return BankConfig(
        admin=str(raw.get("admin", "")),
        max_cap=int(raw.get("max_cap", 0)),
        slippage_bps=int(raw.get("slippage_bps", 500)),
        swap_deadline_seconds=int(raw.get("swap_deadline_seconds", 300)),
        state_path=str(raw.get("state_path", defaults.state_path)),
        accounting_unit=_build_asset_spec(
            raw.get("accounting_unit", {}), defaults.accounting_unit
        ),
        native_asset=_build_asset_spec(
            raw.get("native_asset", {}), defaults.native_asset
        ),
    )


def _build_assets(raw: list[dict[str, Any]]) -> tuple[AssetSpecConfig, ...]:
    empty = AssetSpecConfig()
    return tuple(_build_asset_spec(a, empty) for a in raw)


def _build_rpc(raw: dict[str, Any]) -> RpcConfig:
    return RpcConfig(
        rpc_endpoints=tuple(raw.get("rpc_endpoints", [])),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_custody(raw: dict[str, Any]) -> CustodyConfig:
    return CustodyConfig(address=str(raw.get("address", "")), rpc=_build_rpc(raw))


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        max_age_seconds=int(raw.get("max_age_seconds", 3600)),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        bank=_build_bank(raw.get("bank", {})),
        assets=_build_assets(raw.get("assets", [])),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        router=_build_rpc(raw.get("router", {})),
        custody=_build_custody(raw.get("custody", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    bank = cfg.bank
    if not bank.admin:
        raise ValueError("bank.admin must be configured")
    if bank.max_cap <= 0:
        raise ValueError("bank.max_cap must be positive")
    if not 0 <= bank.slippage_bps < 10_000:
        raise ValueError("bank.slippage_bps must be in [0, 10000)")
    if bank.swap_deadline_seconds <= 0:
        raise ValueError("bank.swap_deadline_seconds must be positive")
    if bank.accounting_unit.asset == bank.native_asset.asset:
        raise ValueError("Accounting unit and native asset must differ")
    if not bank.native_asset.oracle_ref:
        raise ValueError("bank.native_asset.oracle_ref must be configured")

    if cfg.price_oracle.provider != "pyth":
        raise ValueError(f"Unknown price oracle provider '{cfg.price_oracle.provider}'")
    if cfg.price_oracle.max_age_seconds <= 0:
        raise ValueError("price_oracle.max_age_seconds must be positive")

    builtin = {bank.accounting_unit.asset, bank.native_asset.asset}
    seen: set[str] = set()
    for spec in (bank.accounting_unit, bank.native_asset, *cfg.assets):
        if not spec.asset:
            raise ValueError("Asset entry has no identifier")
        if spec.decimals < 0:
            raise ValueError(f"Asset '{spec.asset}' has negative decimals")
    for spec in cfg.assets:
        if spec.asset in builtin:
            raise ValueError(f"Asset '{spec.asset}' is built in and cannot be listed")
        if spec.asset in seen:
            raise ValueError(f"Asset '{spec.asset}' is listed twice")
        seen.add(spec.asset)

    if not cfg.router.rpc_endpoints:
        raise ValueError("At least one router endpoint must be configured")
    if not cfg.custody.rpc.rpc_endpoints:
        raise ValueError("At least one custody endpoint must be configured")
    if not cfg.custody.address:
        raise ValueError("custody.address must be configured")
