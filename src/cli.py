"""Command-line interface for the leveraged-position router."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .aggregator import make_quote_source
from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .models import ScenarioReport
from .services import LeveragePlanner, Simulator


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="altair-router",
        description="Leveraged-position router for collateralized lending markets",
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

    simulate_parser = sub.add_parser(
        "simulate", help="Open (and optionally close or liquidate) a simulated position"
    )
    simulate_parser.add_argument("amount", type=float, help="USDC to borrow and leverage")
    simulate_parser.add_argument(
        "--close",
        type=float,
        default=None,
        metavar="FRACTION",
        help="Deleverage this fraction of the collateral afterwards",
    )
    simulate_parser.add_argument(
        "--liquidate",
        type=float,
        default=None,
        metavar="DROP",
        help="Drop the collateral price by this fraction and liquidate afterwards",
    )

    plan_parser = sub.add_parser("plan", help="Quote the swaps a leverage call needs")
    plan_parser.add_argument("token0", help="Address of the pool's token0")
    plan_parser.add_argument("token1", help="Address of the pool's token1")
    plan_parser.add_argument("amount", type=int, help="USDC amount in token units")
    plan_parser.add_argument(
        "--reserves",
        type=int,
        nargs=2,
        default=None,
        metavar=("RESERVE0", "RESERVE1"),
        help="Pool reserves; also quote the optimal split into the other asset",
    )

    return parser


def _print_report(report: ScenarioReport) -> None:
    print(f"[{report.action}] {report.detail}")
    print(f"  collateral tokens: {report.collateral_tokens}")
    print(f"  debt:              {report.debt}")
    print(f"  borrower usdc:     {report.usdc_balance}")
    print(f"  router residue:    {report.router_residue or 'none'}")


async def _simulate(config: AppConfig, args: argparse.Namespace) -> None:
    simulator = Simulator(config)
    await simulator.setup()
    _print_report(simulator.report("setup", "borrower funded"))
    _print_report(await simulator.open_position(args.amount))
    if args.close is not None:
        _print_report(await simulator.close_position(args.close))
    if args.liquidate is not None:
        _print_report(await simulator.liquidate(args.liquidate))


async def _plan(config: AppConfig, args: argparse.Namespace) -> None:
    planner = LeveragePlanner(
        make_quote_source(config.aggregator),
        usdc=config.router.usdc,
        native=config.router.native_token,
        from_address=config.aggregator.from_address,
    )
    quotes = await planner.plan_leverage(
        args.token0,
        args.token1,
        args.amount,
        reserves=tuple(args.reserves) if args.reserves else None,
        swap_fee=config.router.swap_fee,
    )
    for quote in quotes:
        print(f"{quote.from_token} -> {quote.to_token}: {quote.amount_in} -> {quote.amount_out}")
    for calldata in planner.calldata(quotes):
        print(calldata)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "simulate":
        await _simulate(config, args)
    elif args.command == "plan":
        await _plan(config, args)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))
