"""
Synthetic orderbook derived from a single mid price.

**Conceptual**: The demo has no real order flow, so the book shown next to the
chart is manufactured from the mid price alone: a ladder of bid levels fanning
down from mid and ask levels fanning up, each with a small random size. It is
display-only. Nothing in the ledger fills against it.

**Mathematical**: With spread = mid * spread_coefficient and level i in [0, depth):
    bid_i = mid - i * spread / 2
    ask_i = mid + i * spread / 2
    qty_i ~ U{min_quantity, ..., max_quantity}

Level 0 sits exactly at mid on both sides, so best bid == mid == best ask in
this model. The book is not a crossed/uncrossed market in any real sense.

**Ordering**: bids are strictly descending and asks strictly ascending. That
is enforced by sorting after generation rather than relying on loop order.
Prices are rounded to 4 decimals (MIN_LEVEL_STEP = 0.0001). A book whose
level step (mid * spread_coefficient / 2) is smaller than that is rejected,
since rounding would collapse adjacent levels. With the default 1% spread
every mid at or above the 1.0 price floor qualifies.
"""

from dataclasses import dataclass

import pandas as pd

from poketrade.utils.errors import InvalidInputError
from poketrade.utils.random import RandomSource

BOOK_PRICE_DECIMALS = 4
MIN_LEVEL_STEP = 10 ** -BOOK_PRICE_DECIMALS


@dataclass(frozen=True)
class OrderbookLevel:
    """
    One price level of the synthetic book.

    Attributes:
        price: Level price.
        quantity: Displayed size at this level (positive integer).
    """
    price: float
    quantity: int


@dataclass(frozen=True)
class Orderbook:
    """
    Snapshot of the synthetic book, rebuilt from scratch every tick.

    Attributes:
        mid: The mid price the book was derived from.
        bids: Bid levels, strictly descending by price.
        asks: Ask levels, strictly ascending by price.
    """
    mid: float
    bids: tuple[OrderbookLevel, ...] = ()
    asks: tuple[OrderbookLevel, ...] = ()

    @property
    def best_bid(self) -> float | None:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return self.asks[0].price if self.asks else None

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten the book into a DataFrame with columns side, level, price, quantity.

        Bids come first (best to worst), then asks (best to worst).
        """
        rows = [
            {"side": "bid", "level": i, "price": lvl.price, "quantity": lvl.quantity}
            for i, lvl in enumerate(self.bids)
        ] + [
            {"side": "ask", "level": i, "price": lvl.price, "quantity": lvl.quantity}
            for i, lvl in enumerate(self.asks)
        ]
        return pd.DataFrame(rows, columns=["side", "level", "price", "quantity"])


def synthesize_orderbook(
    mid: float,
    rng: RandomSource,
    depth: int = 8,
    spread_coefficient: float = 0.01,
    min_quantity: int = 1,
    max_quantity: int = 5,
) -> Orderbook:
    """
    Build a symmetric bid/ask ladder around mid.

    **Functionally**:
      - Pure function: no hidden state. Given the same mid and the same random
        source state, the result is identical.
      - Draws one quantity for the bid and one for the ask at each level, in
        level order (bid_0, ask_0, bid_1, ask_1, ...).

    Args:
        mid: Mid price (must be positive).
        rng: Random source providing integers(low, high).
        depth: Number of levels per side (must be >= 1).
        spread_coefficient: Spread as a fraction of mid (must be positive).
        min_quantity: Smallest level size (inclusive, must be >= 1).
        max_quantity: Largest level size (inclusive, must be >= min_quantity).

    Returns:
        Orderbook with `depth` bids and `depth` asks.

    Raises:
        InvalidInputError: If mid, depth, spread_coefficient or the quantity
                           range are out of bounds, or if the level step
                           mid * spread_coefficient / 2 is below MIN_LEVEL_STEP
                           (adjacent levels would round to the same price).
    """
    if mid <= 0:
        raise InvalidInputError(f"mid must be positive, got {mid}")
    if depth < 1:
        raise InvalidInputError(f"depth must be at least 1, got {depth}")
    if spread_coefficient <= 0:
        raise InvalidInputError(
            f"spread_coefficient must be positive, got {spread_coefficient}"
        )
    if min_quantity < 1 or max_quantity < min_quantity:
        raise InvalidInputError(
            f"invalid quantity range [{min_quantity}, {max_quantity}]"
        )

    half_spread = mid * spread_coefficient / 2
    if depth > 1 and half_spread < MIN_LEVEL_STEP:
        raise InvalidInputError(
            f"level step {half_spread:.6g} is below the {MIN_LEVEL_STEP} price tick "
            f"(mid={mid}, spread_coefficient={spread_coefficient})"
        )

    bids = []
    asks = []
    for i in range(depth):
        bids.append(
            OrderbookLevel(
                price=round(mid - i * half_spread, BOOK_PRICE_DECIMALS),
                quantity=_draw_quantity(rng, min_quantity, max_quantity),
            )
        )
        asks.append(
            OrderbookLevel(
                price=round(mid + i * half_spread, BOOK_PRICE_DECIMALS),
                quantity=_draw_quantity(rng, min_quantity, max_quantity),
            )
        )

    bids.sort(key=lambda level: level.price, reverse=True)
    asks.sort(key=lambda level: level.price)

    return Orderbook(mid=mid, bids=tuple(bids), asks=tuple(asks))


def _draw_quantity(rng: RandomSource, low: int, high: int) -> int:
    # numpy's integers() excludes the upper bound
    return int(rng.integers(low, high + 1))
