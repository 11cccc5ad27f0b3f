"""JSON file persistence for the bank snapshot."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..errors import StateCorrupted
from ..models import AssetConfig, BankState

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def state_to_dict(state: BankState) -> dict[str, Any]:
    """Serialize with integer amounts as decimal strings."""
    return {
        "version": SCHEMA_VERSION,
        "balances": {k: str(v) for k, v in sorted(state.balances.items())},
        "capacity_used": str(state.capacity_used),
        "assets": [
            {
                "asset": a.asset,
                "precision": a.precision,
                "oracle_ref": a.oracle_ref,
            }
            for a in state.assets
        ],
        "halted": state.halted,
    }


def state_from_dict(raw: dict[str, Any]) -> BankState:
    try:
        return BankState(
            balances={k: int(v) for k, v in raw.get("balances", {}).items()},
            capacity_used=int(raw.get("capacity_used", 0)),
            assets=tuple(
                AssetConfig(
                    asset=a["asset"],
                    supported=True,
                    precision=int(a.get("precision", 0)),
                    oracle_ref=a.get("oracle_ref", ""),
                )
                for a in raw.get("assets", [])
            ),
            halted=bool(raw.get("halted", False)),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise StateCorrupted(f"Malformed bank state: {e}") from e


class JsonStateStore:
    """Persist the bank snapshot to a JSON file with atomic replace."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> BankState | None:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StateCorrupted(f"Unreadable bank state {self.path}: {e}") from e
        logger.debug("Loaded bank state from %s", self.path)
        return state_from_dict(raw)

    def save(self, state: BankState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as f:
                json.dump(state_to_dict(state), f, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

