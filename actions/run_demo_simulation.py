#!/usr/bin/env python3
"""
Run a headless PokéTrade demo session.

**Purpose**: Exercise the whole simulation core from the command line without
a UI. It seeds the price feed, ticks for a while, optionally opens and
closes a scripted position, and prints the synthetic orderbook, the position
list and the cash balance after every phase.

**Usage**:
    # 30 instant ticks, seeded for reproducibility
    python actions/run_demo_simulation.py --ticks 30 --seed 7

    # Buy 2 units at market, let the price run for 20 ticks, then close
    python actions/run_demo_simulation.py --ticks 20 --buy 2 --close

    # Real-time session driven by the background clock (1 tick/second)
    python actions/run_demo_simulation.py --ticks 5 --realtime

    # Save the retained price series for charting elsewhere
    python actions/run_demo_simulation.py --ticks 120 --save-series data/results/series.csv

**Configuration**: Simulation constants come from POKETRADE_* environment
variables (or .env). See poketrade/config/settings.py. --seed overrides
POKETRADE_RANDOM_SEED.
"""

import argparse
import dataclasses
import sys
import time
from pathlib import Path

# Ensure project root is on path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from poketrade.config.settings import SimulationSettings, get_settings
from poketrade.execution.ledger import LedgerState
from poketrade.market.orderbook import Orderbook
from poketrade.orchestration.simulation import TradingSimulation
from poketrade.utils.errors import SimulationError
from poketrade.utils.formatting import format_usd
from poketrade.utils.logging import setup_logging


def parse_args(argv=None):
    """
    Parse command line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Namespace with attributes: ticks, seed, product, buy, sell, close,
        realtime, save_series.
    """
    parser = argparse.ArgumentParser(
        description="Run a headless PokéTrade demo simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--ticks",
        type=int,
        default=10,
        help="Number of price ticks to run after any scripted order (default: 10)",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: POKETRADE_RANDOM_SEED or non-deterministic)",
    )

    parser.add_argument(
        "--product",
        type=str,
        default=None,
        help="Product id to select (default: first product in the catalog)",
    )

    side = parser.add_mutually_exclusive_group()
    side.add_argument(
        "--buy",
        type=int,
        metavar="QTY",
        default=None,
        help="Place a market buy of QTY units before ticking",
    )
    side.add_argument(
        "--sell",
        type=int,
        metavar="QTY",
        default=None,
        help="Place a market sell of QTY units before ticking",
    )

    parser.add_argument(
        "--close",
        action="store_true",
        help="Close the scripted position after the last tick",
    )

    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Drive ticks with the background clock instead of instantly",
    )

    parser.add_argument(
        "--save-series",
        type=str,
        default=None,
        metavar="PATH",
        help="Write the retained price series to this CSV path",
    )

    args = parser.parse_args(argv)

    if args.ticks < 0:
        parser.error("--ticks must be non-negative")

    return args


def render_orderbook(book: Orderbook) -> list[str]:
    """Format the book as two aligned columns: bids (qty, price) | asks (price, qty)."""
    lines = [f"  {'Bids':>18}   {'Asks':<18}"]
    for bid, ask in zip(book.bids, book.asks):
        lines.append(
            f"  {bid.quantity:>3} {format_usd(bid.price):>14} | {format_usd(ask.price):<14} {ask.quantity:<3}"
        )
    return lines


def render_positions(state: LedgerState) -> list[str]:
    """Format the position list the way the demo's Positions panel shows it."""
    if not state.orders:
        return ["  No positions yet."]

    lines = []
    for order in state.orders:
        fill = format_usd(order.execution_price) if order.filled else "OPEN"
        line = (
            f"  #{order.id} {order.side.value.upper()} {order.quantity} "
            f"{order.kind.value} @ {fill}  unreal {format_usd(order.unrealized_pnl)}"
        )
        if order.closed:
            line += f"  closed @ {format_usd(order.close_price)} realized {format_usd(order.realized_pnl)}"
        lines.append(line)
    return lines


def run_ticks(sim: TradingSimulation, ticks: int, realtime: bool) -> None:
    """
    Advance the simulation by `ticks` steps.

    Instant mode calls sim.tick() directly. Real-time mode starts the clock
    and waits until it has fired enough ticks, then stops it.
    """
    if not realtime:
        for _ in range(ticks):
            sim.tick()
        return

    target = sim.tick_count + ticks
    sim.start()
    try:
        while sim.tick_count < target:
            time.sleep(sim.settings.tick_interval_seconds / 10)
    finally:
        sim.stop()


def print_snapshot(sim: TradingSimulation) -> None:
    state = sim.ledger_state()
    print(f"  Product: {sim.selected_product.name}  Mid: {format_usd(sim.mid_price)}")
    for line in render_orderbook(sim.orderbook()):
        print(line)
    print()
    for line in render_positions(state):
        print(line)
    print(f"  Balance: {format_usd(state.cash)}  Equity: {format_usd(state.equity)}")
    print()


def main(argv=None):
    """
    Main entrypoint for the demo session.

    **Exit codes**:
      - 0: Success
      - 1: Configuration error or rejected scripted order
    """
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.seed is not None:
        settings = dataclasses.replace(settings, random_seed=args.seed)

    setup_logging(settings.log_level)

    print("=" * 80)
    print("PokéTrade Demo Simulation")
    print("=" * 80)
    print()

    with TradingSimulation(settings) as sim:
        try:
            if args.product:
                sim.select_product(args.product)

            print(f"Seeded {len(sim.price_series())} price points from {format_usd(settings.base_price)}")
            print_snapshot(sim)

            order = None
            if args.buy is not None:
                order = sim.place_order("buy", "market", args.buy)
            elif args.sell is not None:
                order = sim.place_order("sell", "market", args.sell)
            if order is not None:
                print(f"Placed order #{order.id}: {order.side.value} {order.quantity} @ {format_usd(order.execution_price)}")
                print()

            print(f"Running {args.ticks} tick(s){' in real time' if args.realtime else ''}...")
            run_ticks(sim, args.ticks, args.realtime)
            print_snapshot(sim)

            if order is not None and args.close:
                closed = sim.close_position(order.id)
                print(f"Closed order #{closed.id} @ {format_usd(closed.close_price)}: realized {format_usd(closed.realized_pnl)}")
                print_snapshot(sim)

        except SimulationError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if args.save_series:
            output_path = Path(args.save_series)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            sim.price_frame().to_csv(output_path, index=False)
            print(f"  ✓ Saved price series: {output_path}")

    print("=" * 80)
    print("Session complete.")
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
