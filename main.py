"""
poketrade – Main entry point.

Runs a short, seeded headless session and prints the resulting mid price,
book range and balance. See actions/run_demo_simulation.py for the full CLI.
"""

from poketrade.config.settings import SimulationSettings
from poketrade.orchestration.simulation import TradingSimulation
from poketrade.utils.formatting import format_usd


def main() -> None:
    """Tick a seeded simulation a few times and print a one-line summary."""
    with TradingSimulation(SimulationSettings(random_seed=42)) as sim:
        for _ in range(5):
            sim.tick()
        book = sim.orderbook()
        print(
            f"poketrade ready: mid {format_usd(sim.mid_price)} "
            f"book {format_usd(book.bids[-1].price)} to {format_usd(book.asks[-1].price)} "
            f"balance {format_usd(sim.ledger_state().cash)}"
        )


if __name__ == "__main__":
    main()
