"""
TradingSimulation: owner of one demo trading session.

**Conceptual**: This is the object a presentation layer talks to. It owns
every piece of session state: the price generator, the retained price
series, the current synthetic orderbook, the position ledger and the
repeating clock. Nothing is global; two simulations never share state.

**Tick data flow** (one call to tick()):
  1. PriceGenerator produces the next mid from the last retained price.
  2. The new point is appended to the PriceSeries (oldest evicted past the window).
  3. The orderbook is rebuilt from the new mid.
  4. The ledger marks every open position to the new mid.

**User actions** (place_order, close_position, select_product) run
synchronously against the latest mid. Ticks and user actions share one
RLock, so each is atomic with respect to the others.

**Read access**: price_series(), orderbook() and ledger_state() return
immutable snapshots. The caller never holds a reference into live state.
"""

import logging
import threading

import pandas as pd

from poketrade.config.settings import Product, SimulationSettings
from poketrade.execution.ledger import LedgerState, Order, OrderKind, OrderSide, PositionLedger
from poketrade.market.orderbook import Orderbook, synthesize_orderbook
from poketrade.market.price_generator import PriceGenerator, PricePoint, PriceSeries
from poketrade.orchestration.clock import SimulationClock
from poketrade.utils.errors import NotFoundError, SimulationError
from poketrade.utils.random import RandomSource, make_random_source
from poketrade.utils.time import Clock, get_real_clock

logger = logging.getLogger(__name__)


class TradingSimulation:
    """
    A single simulated trading session.

    **Lifecycle**:
      - Created at session start: seeds the price history, builds the first
        book, opens the ledger with the configured starting cash.
      - start() begins periodic ticking; tick() can also be driven manually
        (headless runs and tests).
      - stop() (or leaving a `with` block) cancels the clock. Idempotent.

    **Usage**:
        with TradingSimulation(SimulationSettings(random_seed=7)) as sim:
            sim.start()
            order = sim.place_order("buy", "market", quantity=1)
            ...
            sim.close_position(order.id)
    """

    def __init__(
        self,
        settings: SimulationSettings | None = None,
        rng: RandomSource | None = None,
        clock: Clock | None = None,
    ):
        """
        Args:
            settings: Session configuration. Defaults to SimulationSettings().
            rng: Random source for drift and book sizes. Defaults to a numpy
                 Generator seeded with settings.random_seed.
            clock: Time source for timestamps. Defaults to RealClock().
        """
        self._settings = settings if settings is not None else SimulationSettings()
        self._rng = rng if rng is not None else make_random_source(self._settings.random_seed)
        self._clock = clock if clock is not None else get_real_clock()
        self._lock = threading.RLock()

        self._generator = PriceGenerator(
            self._rng,
            drift_bound=self._settings.drift_bound,
            min_price=self._settings.min_price,
        )
        seeded = self._generator.generate_initial_series(
            base_price=self._settings.base_price,
            count=self._settings.seed_points,
            clock=self._clock,
            interval_seconds=self._settings.tick_interval_seconds,
        )
        self._series = PriceSeries(self._settings.retention_window, seeded)
        self._orderbook = self._build_orderbook(self._series.last_price)
        self._ledger = PositionLedger(starting_cash=self._settings.starting_cash)
        self._selected_product = self._settings.products[0]

        self._timer = SimulationClock(
            self._settings.tick_interval_seconds,
            self.tick,
            lock=self._lock,
        )

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def start(self) -> None:
        """Start periodic ticking at settings.tick_interval_seconds."""
        self._timer.start()

    def stop(self) -> None:
        """Cancel the clock. No tick fires after this returns. Idempotent."""
        self._timer.stop()

    @property
    def is_running(self) -> bool:
        return self._timer.is_running

    def __enter__(self) -> "TradingSimulation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ========================================================================
    # Tick processing
    # ========================================================================

    def tick(self) -> PricePoint:
        """
        Advance the simulation by one step.

        All fallible work (price draw, timestamp, book synthesis) happens
        before any state is committed. If it raises, the series, book and
        ledger are left exactly as they were.

        Returns:
            The newly appended PricePoint.
        """
        with self._lock:
            price = self._generator.next_price(self._series.last_price)
            timestamp = self._clock.now()
            orderbook = self._build_orderbook(price)

            point = self._series.append(price, timestamp)
            self._orderbook = orderbook
            self._ledger.mark_to_market(price)
            return point

    def _build_orderbook(self, mid: float) -> Orderbook:
        return synthesize_orderbook(
            mid,
            self._rng,
            depth=self._settings.orderbook_depth,
            spread_coefficient=self._settings.spread_coefficient,
        )

    # ========================================================================
    # User actions
    # ========================================================================

    def place_order(
        self,
        side: OrderSide | str,
        kind: OrderKind | str,
        quantity: int,
        price: float | str | None = None,
    ) -> Order:
        """
        Place an order at the current mid for the selected product.

        Market orders fill immediately at the mid. Limit orders are recorded
        but never fill (see poketrade.execution.ledger).

        Args:
            side: "buy" or "sell".
            kind: "market" or "limit".
            quantity: Positive integer quantity.
            price: Ticket price; blank/None defaults to the current mid.

        Returns:
            Copy of the new order.

        Raises:
            InvalidInputError: On invalid side, kind, quantity or price.
        """
        with self._lock:
            try:
                return self._ledger.place_order(
                    side,
                    kind,
                    quantity,
                    current_mid=self._series.last_price,
                    requested_price=price,
                    product_id=self._selected_product.id,
                    timestamp=pd.Timestamp(self._clock.now()),
                )
            except SimulationError as e:
                logger.warning("order rejected: %s", e)
                raise

    def close_position(self, order_id: int) -> Order:
        """
        Close a filled position at the current mid, crediting realized PnL to cash.

        Raises:
            NotFoundError: If order_id is unknown.
            InvalidStateError: If the order never filled or is already closed.
        """
        with self._lock:
            try:
                return self._ledger.close_position(
                    order_id,
                    current_mid=self._series.last_price,
                    timestamp=pd.Timestamp(self._clock.now()),
                )
            except SimulationError as e:
                logger.warning("close rejected: %s", e)
                raise

    def select_product(self, product_id: str) -> Product:
        """
        Switch the product shown by the view.

        All products share one simulated feed, so this changes only the
        reported selection (and the product stamped on new orders). The price
        series, book and ledger carry on untouched.

        Raises:
            NotFoundError: If product_id is not in the catalog.
        """
        with self._lock:
            product = self._settings.get_product(product_id)
            if product is None:
                raise NotFoundError(f"product {product_id!r} not found")
            self._selected_product = product
            logger.info("selected product %s", product.id)
            return product

    # ========================================================================
    # Read-only snapshots
    # ========================================================================

    @property
    def settings(self) -> SimulationSettings:
        return self._settings

    @property
    def mid_price(self) -> float:
        with self._lock:
            return self._series.last_price

    @property
    def selected_product(self) -> Product:
        return self._selected_product

    @property
    def products(self) -> tuple[Product, ...]:
        return self._settings.products

    @property
    def tick_count(self) -> int:
        """Ticks fired by the background clock (manual tick() calls excluded)."""
        return self._timer.tick_count

    def price_series(self) -> tuple[PricePoint, ...]:
        with self._lock:
            return self._series.snapshot()

    def price_frame(self) -> pd.DataFrame:
        """Retained price series as a DataFrame (sequence, timestamp, price)."""
        with self._lock:
            return self._series.to_frame()

    def orderbook(self) -> Orderbook:
        with self._lock:
            return self._orderbook

    def ledger_state(self) -> LedgerState:
        with self._lock:
            return self._ledger.snapshot()

    def ledger_frame(self) -> pd.DataFrame:
        """Order history as a DataFrame, most recent first."""
        with self._lock:
            return self._ledger.to_frame()
