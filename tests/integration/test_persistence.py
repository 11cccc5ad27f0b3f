"""Restart behaviour — engine state survives through the JSON store."""
from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import pytest

from stablevault.errors import StateCorrupted
from stablevault.services import build_engine
from stablevault.storage import JsonStateStore

ADMIN = "0xADMIN"
ALICE = "0xALICE"
BOB = "0xBOB"

USDC = 10**6
ETH = 10**18


@pytest.fixture()
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "bank.json"


@pytest.fixture()
def restart(sample_app_config, price_source, router, payout, clock, state_file):
    """Build a fresh engine over the same state file, as a process restart would."""

    def _restart(config=sample_app_config):
        return build_engine(
            config,
            source=price_source,
            router=router,
            payout=payout,
            store=JsonStateStore(state_file),
            clock=clock,
        )

    return _restart


@pytest.mark.asyncio
async def test_balances_assets_and_halt_survive_restart(restart, state_file: Path) -> None:
    engine = restart()
    await engine.deposit_asset(ALICE, "USDC", 300 * USDC)
    await engine.deposit_native(BOB, ETH)
    await engine.add_asset(ADMIN, "TKB", 6, "TKB")
    await engine.remove_asset(ADMIN, "TKA")
    await engine.halt(ADMIN)

    reloaded = restart()

    assert reloaded.balance_of(ALICE) == 300 * USDC
    assert reloaded.balance_of(BOB) == 2000 * USDC
    assert reloaded.get_bank_info().total_capacity_used == 2300 * USDC
    assert reloaded.halted is True
    assert reloaded.get_asset_config("TKB").supported
    assert not reloaded.get_asset_config("TKA").supported

    raw = json.loads(state_file.read_text())
    assert raw["balances"][ALICE] == str(300 * USDC)
    assert raw["capacity_used"] == str(2300 * USDC)


def test_fresh_store_seeds_configured_assets(restart, state_file: Path) -> None:
    engine = restart()
    assert engine.get_asset_config("TKA").supported
    assert engine.get_bank_info().total_capacity_used == 0
    assert not state_file.exists()


@pytest.mark.asyncio
async def test_failed_withdrawal_persists_restored_balance(
    restart, payout
) -> None:
    engine = restart()
    await engine.deposit_asset(ALICE, "USDC", 50 * USDC)
    payout.fail = RuntimeError("custody unreachable")

    with pytest.raises(RuntimeError):
        await engine.withdraw(ALICE, 50 * USDC)

    assert restart().balance_of(ALICE) == 50 * USDC


def test_inconsistent_counter_rejected(restart, state_file: Path) -> None:
    state_file.parent.mkdir(parents=True)
    state_file.write_text(
        json.dumps(
            {
                "version": 1,
                "balances": {ALICE: "100"},
                "capacity_used": "150",
                "assets": [],
                "halted": False,
            }
        )
    )
    with pytest.raises(StateCorrupted):
        restart()


def test_non_object_state_rejected(restart, state_file: Path) -> None:
    state_file.parent.mkdir(parents=True)
    state_file.write_text("[1, 2, 3]")
    with pytest.raises(StateCorrupted):
        restart()


@pytest.mark.asyncio
async def test_lowered_cap_below_usage_rejected(
    restart, sample_app_config
) -> None:
    engine = restart()
    await engine.deposit_asset(ALICE, "USDC", 500 * USDC)

    lowered = dataclasses.replace(
        sample_app_config,
        bank=dataclasses.replace(sample_app_config.bank, max_cap=100 * USDC),
    )
    with pytest.raises(StateCorrupted):
        restart(lowered)
