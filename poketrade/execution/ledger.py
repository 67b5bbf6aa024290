"""
Order/position ledger with mark-to-market PnL.

**Conceptual**: The ledger is the only stateful piece of the trading model. It
owns the cash balance and every order the user has ever placed. Four
operations mutate it: place an order, fill it (market orders only, at
placement), mark open positions to the current mid, and close a position.
Orders are never deleted; closed ones stay in the history.

**Financial assumptions** (demo model, documented so nobody mistakes it for a
real venue):
  - Market orders fill immediately and in full at the current mid price.
  - Limit orders are accepted and recorded but NEVER fill. There is no
    matching engine; the synthetic orderbook is display-only.
  - Each filled order is its own position. There is no netting across orders.
  - Opening a position does not move cash (no margin, no fees). Cash only
    changes when a position is closed, by exactly the realized PnL.
  - PnL is (mid - execution) * quantity for a buy and the negation for a sell,
    rounded to 2 decimals.

**Why return copies?**
  - The presentation layer observes the ledger through snapshots. If it got a
    live Order it could mutate ledger state behind the ledger's back, or see
    a half-applied update. Every read path returns a copy.

**Concurrency**: The ledger itself takes no locks. TradingSimulation serializes
every call (ticks and user actions) behind one lock.
"""

import logging
import math
import numbers
from dataclasses import dataclass, field, replace
from enum import Enum

import pandas as pd

from poketrade.utils.errors import InvalidInputError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

PNL_DECIMALS = 2


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderKind(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


@dataclass
class Order:
    """
    A user order and, once filled, the position it opened.

    **Lifecycle**:
      placed (filled=False) → filled (market orders, immediately) → closed.
      Limit orders stay at "placed" forever.

    Attributes:
        id: Unique, monotonically increasing id (starts at 1, never reused).
        side: BUY or SELL.
        kind: MARKET or LIMIT.
        requested_price: Price on the order ticket. Defaults to the mid at
                        placement when the ticket price is left blank.
        quantity: Number of units (positive integer).
        created_at: Timestamp the order was placed.
        product_id: Product selected when the order was placed (informational;
                   all products share one feed).
        filled: True once the order has executed.
        execution_price: Fill price (mid at placement) or None if unfilled.
        unrealized_pnl: Mark-to-market PnL. Only updated while filled and open.
        closed: True once the position has been closed.
        close_price: Mid price at close, or None.
        realized_pnl: PnL fixed at close, or None.
        closed_at: Timestamp of the close, or None.
    """
    id: int
    side: OrderSide
    kind: OrderKind
    requested_price: float | None
    quantity: int
    created_at: pd.Timestamp
    product_id: str | None = None
    filled: bool = False
    execution_price: float | None = None
    unrealized_pnl: float = 0.0
    closed: bool = False
    close_price: float | None = None
    realized_pnl: float | None = None
    closed_at: pd.Timestamp | None = None

    @property
    def is_open_position(self) -> bool:
        """True if the order filled and has not been closed yet."""
        return self.filled and not self.closed


@dataclass(frozen=True)
class LedgerState:
    """
    Read-only snapshot of the ledger.

    Attributes:
        starting_cash: Cash the ledger was created with.
        cash: Current cash balance (starting cash + sum of realized PnL).
        orders: Copies of every order, most recent first.
    """
    starting_cash: float
    cash: float
    orders: tuple[Order, ...] = field(default_factory=tuple)

    @property
    def open_positions(self) -> tuple[Order, ...]:
        return tuple(o for o in self.orders if o.is_open_position)

    @property
    def total_unrealized_pnl(self) -> float:
        return round(sum(o.unrealized_pnl for o in self.open_positions), PNL_DECIMALS)

    @property
    def total_realized_pnl(self) -> float:
        return round(
            sum(o.realized_pnl for o in self.orders if o.realized_pnl is not None),
            PNL_DECIMALS,
        )

    @property
    def equity(self) -> float:
        """Cash plus unrealized PnL of open positions."""
        return round(self.cash + self.total_unrealized_pnl, PNL_DECIMALS)


def compute_pnl(
    side: OrderSide,
    execution_price: float,
    current_mid: float,
    quantity: int,
) -> float:
    """
    Profit/loss of a position valued at current_mid.

    **Mathematical**:
        buy:  (mid - execution) * quantity
        sell: (execution - mid) * quantity
    rounded to 2 decimals.

    Examples:
        >>> compute_pnl(OrderSide.BUY, 100.0, 110.0, 2)
        20.0
        >>> compute_pnl(OrderSide.SELL, 100.0, 110.0, 2)
        -20.0
    """
    if side == OrderSide.BUY:
        pnl = (current_mid - execution_price) * quantity
    else:
        pnl = (execution_price - current_mid) * quantity
    return round(pnl, PNL_DECIMALS)


class PositionLedger:
    """
    Owns the user's orders, positions and cash balance.

    **Conceptual**: The ledger is created once when a simulation starts and
    lives until it ends. All state changes go through place_order,
    mark_to_market and close_position; everything else is read-only.

    **Error handling**: Invalid requests raise from the poketrade.utils.errors
    hierarchy before any state is touched, so a rejected call never leaves
    a half-applied change behind.
    """

    def __init__(self, starting_cash: float = 10_000.0):
        """
        Args:
            starting_cash: Initial cash balance (must be non-negative).

        Raises:
            InvalidInputError: If starting_cash is negative.
        """
        if starting_cash < 0:
            raise InvalidInputError(f"starting_cash must be non-negative, got {starting_cash}")

        self._starting_cash = float(starting_cash)
        self._cash = float(starting_cash)
        self._orders: dict[int, Order] = {}
        self._history: list[int] = []  # order ids, most recent first
        self._next_id = 1

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def next_id(self) -> int:
        return self._next_id

    def place_order(
        self,
        side: OrderSide | str,
        kind: OrderKind | str,
        quantity: int,
        current_mid: float,
        requested_price: float | str | None = None,
        product_id: str | None = None,
        timestamp: pd.Timestamp | None = None,
    ) -> Order:
        """
        Record a new order; fill it immediately if it is a market order.

        **Functionally**:
          - Validates every argument first; a rejected order consumes no id.
          - Allocates the next id (monotonic, never reused).
          - MARKET: filled=True, execution_price=current_mid.
          - LIMIT: filled=False, permanently (no matching engine).
          - Prepends the order to the history (most recent first).

        Args:
            side: "buy"/"sell" or OrderSide.
            kind: "market"/"limit" or OrderKind.
            quantity: Positive integer quantity.
            current_mid: Mid price at the time of placement (must be positive).
            requested_price: Ticket price as a number or numeric string.
                            None or a blank string defaults to current_mid.
            product_id: Currently selected product, stored on the order.
            timestamp: Placement time; defaults to now (UTC).

        Returns:
            A copy of the newly created order.

        Raises:
            InvalidInputError: On a non-positive or non-integer quantity, an
                               unknown side/kind, a malformed or non-positive
                               price, or a non-positive mid.
        """
        side = _parse_enum(OrderSide, side, "side")
        kind = _parse_enum(OrderKind, kind, "kind")

        if isinstance(quantity, bool) or not isinstance(quantity, numbers.Integral):
            raise InvalidInputError(f"quantity must be an integer, got {quantity!r}")
        quantity = int(quantity)
        if quantity <= 0:
            raise InvalidInputError(f"quantity must be positive, got {quantity}")

        current_mid = _parse_price(current_mid, "current_mid")
        if requested_price is None or (isinstance(requested_price, str) and not requested_price.strip()):
            price = current_mid
        else:
            price = _parse_price(requested_price, "requested_price")

        order = Order(
            id=self._next_id,
            side=side,
            kind=kind,
            requested_price=price,
            quantity=quantity,
            created_at=timestamp if timestamp is not None else pd.Timestamp.now(tz="UTC"),
            product_id=product_id,
        )

        if kind == OrderKind.MARKET:
            order.filled = True
            order.execution_price = current_mid

        self._orders[order.id] = order
        self._history.insert(0, order.id)
        self._next_id += 1

        logger.info(
            "placed order id=%d %s %s qty=%d price=%.2f filled=%s",
            order.id, side.value, kind.value, quantity, price, order.filled,
        )
        return replace(order)

    def mark_to_market(self, current_mid: float) -> None:
        """
        Revalue every open position at current_mid.

        Unfilled (limit) orders and closed positions are left untouched.

        Args:
            current_mid: Latest mid price.

        Raises:
            InvalidInputError: If current_mid is not a positive finite number.
                               No position is revalued in that case.
        """
        current_mid = _parse_price(current_mid, "current_mid")
        for order in self._orders.values():
            if not order.is_open_position:
                continue
            order.unrealized_pnl = compute_pnl(
                order.side, order.execution_price, current_mid, order.quantity
            )

    def close_position(
        self,
        order_id: int,
        current_mid: float,
        timestamp: pd.Timestamp | None = None,
    ) -> Order:
        """
        Close a filled position at current_mid and realize its PnL.

        **Financial logic**:
          1. realized = compute_pnl(side, execution_price, current_mid, quantity)
          2. cash = round(cash + realized, 2)
          3. Stamp closed=True, close_price=current_mid, realized_pnl=realized.
             unrealized_pnl is zeroed since nothing is open anymore.

        **Idempotence**: A second close on the same id raises InvalidStateError
        and leaves cash unchanged. PnL can only be credited once per order.

        Args:
            order_id: Id returned by place_order.
            current_mid: Latest mid price.
            timestamp: Close time; defaults to now (UTC).

        Returns:
            A copy of the closed order.

        Raises:
            NotFoundError: If order_id is unknown.
            InvalidStateError: If the order never filled or is already closed.
            InvalidInputError: If current_mid is not a positive number.
        """
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found")
        if not order.filled:
            raise InvalidStateError(f"order {order_id} is not filled and cannot be closed")
        if order.closed:
            raise InvalidStateError(f"order {order_id} is already closed")
        current_mid = _parse_price(current_mid, "current_mid")

        realized = compute_pnl(order.side, order.execution_price, current_mid, order.quantity)
        self._cash = round(self._cash + realized, PNL_DECIMALS)

        order.closed = True
        order.close_price = current_mid
        order.realized_pnl = realized
        order.unrealized_pnl = 0.0
        order.closed_at = timestamp if timestamp is not None else pd.Timestamp.now(tz="UTC")

        logger.info(
            "closed order id=%d at %.2f realized=%.2f cash=%.2f",
            order.id, current_mid, realized, self._cash,
        )
        return replace(order)

    def get_order(self, order_id: int) -> Order:
        """
        Return a copy of a single order.

        Raises:
            NotFoundError: If order_id is unknown.
        """
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found")
        return replace(order)

    def snapshot(self) -> LedgerState:
        """Read-only snapshot of cash and all orders (most recent first)."""
        return LedgerState(
            starting_cash=self._starting_cash,
            cash=self._cash,
            orders=tuple(replace(self._orders[order_id]) for order_id in self._history),
        )

    def to_frame(self) -> pd.DataFrame:
        """Order history as a DataFrame, one row per order, most recent first."""
        rows = []
        for order_id in self._history:
            order = self._orders[order_id]
            rows.append({
                "id": order.id,
                "product_id": order.product_id,
                "side": order.side.value,
                "kind": order.kind.value,
                "quantity": order.quantity,
                "requested_price": order.requested_price,
                "filled": order.filled,
                "execution_price": order.execution_price,
                "unrealized_pnl": order.unrealized_pnl,
                "closed": order.closed,
                "close_price": order.close_price,
                "realized_pnl": order.realized_pnl,
                "created_at": order.created_at,
                "closed_at": order.closed_at,
            })
        return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


LEDGER_COLUMNS = [
    "id",
    "product_id",
    "side",
    "kind",
    "quantity",
    "requested_price",
    "filled",
    "execution_price",
    "unrealized_pnl",
    "closed",
    "close_price",
    "realized_pnl",
    "created_at",
    "closed_at",
]


def _parse_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"{name} must be one of {allowed}, got {value!r}")


def _parse_price(value, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(price) or price <= 0:
        raise InvalidInputError(f"{name} must be a positive finite number, got {value!r}")
    return price
