"""Command-line interface for the custodial bank."""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from typing import Any

from .config import load_config
from .errors import BankError
from .logging_setup import configure_logging
from .services import BankEngine, build_engine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="stablevault",
        description="Custodial multi-asset bank with a single accounting unit",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("info", help="Totals, remaining capacity and halt state")

    p = sub.add_parser("balance", help="Balance of a depositor")
    p.add_argument("depositor")

    p = sub.add_parser("asset", help="Registry configuration of an asset")
    p.add_argument("asset")

    p = sub.add_parser("route", help="Whether an asset can be routed")
    p.add_argument("asset")

    p = sub.add_parser("preview", help="Estimate a conversion")
    p.add_argument("asset_in")
    p.add_argument("asset_out")
    p.add_argument("amount", nargs="?", type=int, default=None)

    p = sub.add_parser("deposit-native", help="Deposit the native reference asset")
    p.add_argument("caller")
    p.add_argument("amount", type=int)

    p = sub.add_parser("deposit", help="Deposit an asset")
    p.add_argument("caller")
    p.add_argument("asset")
    p.add_argument("amount", type=int)

    p = sub.add_parser("withdraw", help="Withdraw accounting units as native asset")
    p.add_argument("caller")
    p.add_argument("amount", type=int)

    p = sub.add_parser("add-asset", help="Register an asset (admin)")
    p.add_argument("caller")
    p.add_argument("asset")
    p.add_argument("precision", type=int)
    p.add_argument("oracle_ref")

    p = sub.add_parser("remove-asset", help="Unregister an asset (admin)")
    p.add_argument("caller")
    p.add_argument("asset")

    for name, text in (("halt", "Halt deposits and withdrawals (admin)"),
                       ("resume", "Resume deposits and withdrawals (admin)")):
        p = sub.add_parser(name, help=text)
        p.add_argument("caller")

    return parser


async def _dispatch(engine: BankEngine, args: argparse.Namespace) -> Any:
    """Execute the selected command and return its result."""
    cmd = args.command
    if cmd == "info":
        return engine.get_bank_info()
    if cmd == "balance":
        return {"depositor": args.depositor, "balance": engine.balance_of(args.depositor)}
    if cmd == "asset":
        return engine.get_asset_config(args.asset)
    if cmd == "route":
        return {"asset": args.asset, "has_route": await engine.has_route(args.asset)}
    if cmd == "preview":
        amount = await engine.preview_conversion(args.asset_in, args.asset_out, args.amount)
        return {"asset_in": args.asset_in, "asset_out": args.asset_out, "estimated": amount}
    if cmd == "deposit-native":
        return await engine.deposit_native(args.caller, args.amount)
    if cmd == "deposit":
        return await engine.deposit_asset(args.caller, args.asset, args.amount)
    if cmd == "withdraw":
        return await engine.withdraw(args.caller, args.amount)
    if cmd == "add-asset":
        return await engine.add_asset(args.caller, args.asset, args.precision, args.oracle_ref)
    if cmd == "remove-asset":
        await engine.remove_asset(args.caller, args.asset)
        return {"removed": args.asset}
    if cmd == "halt":
        await engine.halt(args.caller)
        return engine.get_bank_info()
    if cmd == "resume":
        await engine.resume(args.caller)
        return engine.get_bank_info()
    raise ValueError(f"Unknown command: {cmd}")


def _to_jsonable(result: Any) -> Any:
    if dataclasses.is_dataclass(result):
        return dataclasses.asdict(result)
    return result


async def _run(args: argparse.Namespace) -> int:
    configure_logging(args.log_level)
    config = load_config(args.config)
    engine = build_engine(config)

    try:
        result = await _dispatch(engine, args)
    except BankError as e:
        logger.error("%s failed: %s (%s)", args.command, e.code, e)
        return 2

    print(json.dumps(_to_jsonable(result), indent=2))
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
