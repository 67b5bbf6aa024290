"""
Tests for poketrade/orchestration/simulation.py

These tests drive TradingSimulation through manual tick() calls with a
scripted random source, so that every price and PnL below is hand-checkable.
The last few tests start the real background clock with a tiny interval.
"""

import time
from datetime import datetime, timezone

import pandas as pd
import pytest

from poketrade.config.settings import SimulationSettings
from poketrade.orchestration.simulation import TradingSimulation
from poketrade.utils.errors import InvalidInputError, InvalidStateError, NotFoundError
from poketrade.utils.time import FrozenClock, ManualClock


NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.001)
    return predicate()


@pytest.fixture
def scripted_sim(scripted_rng):
    """Simulation with zero drift unless a test queues some, frozen at NOW."""
    rng = scripted_rng()
    sim = TradingSimulation(SimulationSettings(), rng=rng, clock=FrozenClock(NOW))
    yield sim, rng
    sim.stop()


def test_simulation_seeds_history_and_book():
    """
    Test construction.

    Expected:
      - 60 seeded points
      - Book centred on the last seeded price with 8 levels per side
      - Ledger at 10,000 with no orders, first product selected
    """
    with TradingSimulation(SimulationSettings(random_seed=42)) as sim:
        points = sim.price_series()
        book = sim.orderbook()
        state = sim.ledger_state()

        assert len(points) == 60
        assert sim.mid_price == points[-1].price
        assert book.mid == points[-1].price
        assert len(book.bids) == 8
        assert len(book.asks) == 8
        assert state.cash == 10_000.0
        assert state.orders == ()
        assert sim.selected_product.id == "151_ETB"
        assert sim.is_running is False


def test_same_seed_gives_same_session():
    settings = SimulationSettings(random_seed=7)

    with TradingSimulation(settings) as sim_a, TradingSimulation(settings) as sim_b:
        for _ in range(25):
            sim_a.tick()
            sim_b.tick()

        assert [p.price for p in sim_a.price_series()] == [p.price for p in sim_b.price_series()]
        assert sim_a.orderbook() == sim_b.orderbook()


def test_ticks_respect_window_and_evict_oldest(scripted_sim):
    """
    Test the retention window through the simulation.

    Scenario:
      - 60 seeded points (sequences 0..59)
      - 200 ticks

    Expected:
      - Never more than 120 points
      - Final sequences 140..259
    """
    sim, _ = scripted_sim

    for _ in range(200):
        sim.tick()
        assert len(sim.price_series()) <= 120

    points = sim.price_series()
    assert len(points) == 120
    assert points[0].sequence == 140
    assert points[-1].sequence == 259


def test_tick_rebuilds_book_at_new_mid(scripted_sim):
    sim, rng = scripted_sim
    rng.queue_uniform(0.5)

    point = sim.tick()

    assert point.price == 150.5
    assert point.timestamp == pd.Timestamp(NOW)
    assert sim.mid_price == 150.5
    assert sim.orderbook().mid == 150.5
    assert sim.orderbook().best_bid == 150.5


def test_end_to_end_buy_tick_close(scripted_sim):
    """
    End-to-end demo session.

    Scenario:
      - Start cash 10,000, mid 150 (zero drift while seeding)
      - Market buy 1 → fills at 150
      - Tick with +10 drift → mid 160, unrealized 10.00
      - Close → realized 10.00, cash 10,010.00
    """
    sim, rng = scripted_sim
    assert sim.mid_price == 150.0

    order = sim.place_order("buy", "market", 1)
    assert order.filled is True
    assert order.execution_price == 150.0
    assert order.product_id == "151_ETB"

    rng.queue_uniform(10.0)
    sim.tick()
    assert sim.mid_price == 160.0
    state = sim.ledger_state()
    assert state.orders[0].unrealized_pnl == 10.0
    assert state.equity == 10_010.0

    closed = sim.close_position(order.id)
    assert closed.realized_pnl == 10.0
    assert closed.close_price == 160.0
    assert closed.closed_at == pd.Timestamp(NOW)
    assert sim.ledger_state().cash == 10_010.0

    with pytest.raises(InvalidStateError):
        sim.close_position(order.id)
    assert sim.ledger_state().cash == 10_010.0


def test_limit_order_stays_unfilled_across_ticks(scripted_sim):
    sim, rng = scripted_sim
    order = sim.place_order("buy", "limit", 2, price="149")

    rng.queue_uniform(-5.0, -5.0, 20.0)
    for _ in range(3):
        sim.tick()

    stored = sim.ledger_state().orders[0]
    assert stored.id == order.id
    assert stored.filled is False
    assert stored.requested_price == 149.0
    assert stored.unrealized_pnl == 0.0


def test_rejected_order_leaves_ledger_untouched(scripted_sim):
    sim, _ = scripted_sim
    before = sim.ledger_state()

    with pytest.raises(InvalidInputError):
        sim.place_order("buy", "market", 0)

    with pytest.raises(InvalidInputError):
        sim.place_order("buy", "limit", 1, price="not-a-price")

    with pytest.raises(NotFoundError):
        sim.close_position(99)

    assert sim.ledger_state() == before


def test_select_product(scripted_sim):
    """Test switching products: stamps new orders, leaves the feed alone."""
    sim, _ = scripted_sim
    series_before = sim.price_series()

    product = sim.select_product("SV_PF_ETB")
    order = sim.place_order("sell", "market", 1)

    assert product.id == "SV_PF_ETB"
    assert sim.selected_product == product
    assert order.product_id == "SV_PF_ETB"
    assert sim.price_series() == series_before

    with pytest.raises(NotFoundError):
        sim.select_product("NOT_A_PRODUCT")
    assert sim.selected_product.id == "SV_PF_ETB"


def test_frames_export(scripted_sim):
    sim, _ = scripted_sim
    sim.place_order("buy", "market", 1)

    assert len(sim.price_frame()) == 60
    assert sim.ledger_frame()["id"].tolist() == [1]


def test_timestamps_follow_injected_clock(scripted_rng):
    clock = ManualClock(NOW)
    with TradingSimulation(SimulationSettings(seed_points=5), rng=scripted_rng(), clock=clock) as sim:
        clock.advance(30)
        point = sim.tick()

        assert point.timestamp == pd.Timestamp(NOW) + pd.Timedelta(seconds=30)
        assert sim.price_series()[0].timestamp == pd.Timestamp(NOW) - pd.Timedelta(seconds=4)


def test_background_clock_drives_ticks():
    """Test start/stop with a real clock: ticks advance the feed, none after stop."""
    settings = SimulationSettings(tick_interval_seconds=0.005, random_seed=3)
    sim = TradingSimulation(settings)

    sim.start()
    assert sim.is_running is True
    assert wait_for(lambda: sim.tick_count >= 5)
    sim.stop()

    assert sim.is_running is False
    final_len = len(sim.price_series())
    final_last = sim.price_series()[-1]
    time.sleep(0.05)
    assert len(sim.price_series()) == final_len
    assert sim.price_series()[-1] == final_last

    sim.stop()
    with pytest.raises(InvalidStateError):
        sim.start()


def test_context_manager_stops_clock():
    settings = SimulationSettings(tick_interval_seconds=0.005, random_seed=3)

    with TradingSimulation(settings) as sim:
        sim.start()
        assert wait_for(lambda: sim.tick_count >= 1)

    assert sim.is_running is False
    count = sim.tick_count
    time.sleep(0.05)
    assert sim.tick_count == count


def test_user_actions_interleave_with_background_ticks():
    """Test placing and closing orders while the clock is ticking."""
    settings = SimulationSettings(tick_interval_seconds=0.002, random_seed=11)

    with TradingSimulation(settings) as sim:
        sim.start()
        order_ids = [sim.place_order("buy", "market", 1).id for _ in range(20)]
        assert wait_for(lambda: sim.tick_count >= 3)
        for order_id in order_ids:
            sim.close_position(order_id)

    state = sim.ledger_state()
    assert state.open_positions == ()
    assert state.cash == pytest.approx(10_000.0 + state.total_realized_pnl)


def test_failed_tick_leaves_state_untouched(scripted_rng):
    """
    Test that a tick is all-or-nothing.

    Scenario:
      - Buy 1 at 150
      - Queue +10 drift, then make the book's size draw fail

    Expected:
      - tick() raises, and series, book, mid and unrealized PnL are unchanged
    """

    class FailingSizes(scripted_rng):
        fail = False

        def integers(self, low, high):
            if self.fail:
                raise RuntimeError("size draw failed")
            return super().integers(low, high)

    rng = FailingSizes()
    with TradingSimulation(SimulationSettings(), rng=rng, clock=FrozenClock(NOW)) as sim:
        sim.place_order("buy", "market", 1)
        series_before = sim.price_series()
        book_before = sim.orderbook()

        rng.fail = True
        rng.queue_uniform(10.0)
        with pytest.raises(RuntimeError):
            sim.tick()

        assert sim.price_series() == series_before
        assert sim.orderbook() == book_before
        assert sim.mid_price == 150.0
        assert sim.ledger_state().orders[0].unrealized_pnl == 0.0
