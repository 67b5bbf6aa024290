"""
Configuration settings for the trading simulation.

**Conceptual**: This module provides a strongly-typed configuration object that
loads from environment variables (via .env files). All settings are validated
at construction, so a bad value (negative window, zero tick interval) fails
fast at startup rather than mid-session.

**Why centralized config?**
  - Single source of truth for every simulation constant.
  - Easy to test (construct SimulationSettings(...) directly, no environment needed).
  - Each component still takes plain arguments, so settings never leak into
    the pure pricing/orderbook functions.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from poketrade.market.orderbook import MIN_LEVEL_STEP

# Load .env from project root if present (dev/local environments)
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Product:
    """
    A tradable collectible product.

    All products share one simulated price feed; selecting a product only
    changes which product the view reports.

    Attributes:
        id: Short identifier (e.g., "151_ETB").
        name: Display name (e.g., "151 Elite Trainer Box").
    """
    id: str
    name: str


DEFAULT_PRODUCTS: tuple[Product, ...] = (
    Product(id="151_ETB", name="151 Elite Trainer Box"),
    Product(id="SV_PF_ETB", name="SV Paldean Fates ETB"),
    Product(id="BASE_CHAR_PSA10", name="Base Set Charizard PSA10"),
)


@dataclass(frozen=True)
class SimulationSettings:
    """
    Configuration for a simulation session.

    **Conceptual**: Every constant the simulation depends on is a field here,
    with the demo's defaults. Components receive the individual values they
    need; only the TradingSimulation owner reads the whole object.

    Attributes:
        starting_cash: Cash balance the ledger is created with (USD).
        retention_window: Number of most recent price points kept in the series.
        orderbook_depth: Number of levels per side in the synthetic book.
        tick_interval_seconds: Delay between simulation ticks.
        drift_bound: Per-tick drift is drawn uniformly from [-drift_bound, +drift_bound].
        spread_coefficient: Book spread as a fraction of mid (0.01 = 1%).
        min_price: Floor applied to every generated price.
        base_price: Starting point for the seeded price history.
        seed_points: Number of points generated before live ticking starts.
        random_seed: Seed for the random source; None means non-deterministic.
        log_level: Logging level name used by entry points.
        products: Product catalog available for selection.
    """
    starting_cash: float = 10_000.0
    retention_window: int = 120
    orderbook_depth: int = 8
    tick_interval_seconds: float = 1.0
    drift_bound: float = 0.75
    spread_coefficient: float = 0.01
    min_price: float = 1.0
    base_price: float = 150.0
    seed_points: int = 60
    random_seed: int | None = None
    log_level: str = "INFO"
    products: tuple[Product, ...] = field(default=DEFAULT_PRODUCTS)

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.starting_cash < 0:
            raise ValueError(f"starting_cash must be non-negative, got: {self.starting_cash}")
        if self.retention_window < 1:
            raise ValueError(f"retention_window must be at least 1, got: {self.retention_window}")
        if self.orderbook_depth < 1:
            raise ValueError(f"orderbook_depth must be at least 1, got: {self.orderbook_depth}")
        if self.tick_interval_seconds <= 0:
            raise ValueError(
                f"tick_interval_seconds must be positive, got: {self.tick_interval_seconds}"
            )
        if self.drift_bound < 0:
            raise ValueError(f"drift_bound must be non-negative, got: {self.drift_bound}")
        if self.spread_coefficient <= 0:
            raise ValueError(
                f"spread_coefficient must be positive, got: {self.spread_coefficient}"
            )
        if self.min_price <= 0:
            raise ValueError(f"min_price must be positive, got: {self.min_price}")
        if (
            self.orderbook_depth > 1
            and self.min_price * self.spread_coefficient / 2 < MIN_LEVEL_STEP
        ):
            # Book levels at the price floor must stay at least one tick apart
            raise ValueError(
                f"spread_coefficient {self.spread_coefficient} is too small for "
                f"min_price {self.min_price}: level step must be at least {MIN_LEVEL_STEP}"
            )
        if self.base_price < self.min_price:
            raise ValueError(
                f"base_price must be at least min_price ({self.min_price}), got: {self.base_price}"
            )
        if self.seed_points < 1:
            raise ValueError(f"seed_points must be at least 1, got: {self.seed_points}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got: {self.log_level}"
            )
        if not self.products:
            raise ValueError("products must contain at least one product")

    @classmethod
    def from_env(cls) -> "SimulationSettings":
        """
        Load simulation settings from environment variables.

        **Environment variables** (all optional, defaults in parentheses):
          - POKETRADE_STARTING_CASH (10000)
          - POKETRADE_RETENTION_WINDOW (120)
          - POKETRADE_ORDERBOOK_DEPTH (8)
          - POKETRADE_TICK_INTERVAL_SECONDS (1.0)
          - POKETRADE_DRIFT_BOUND (0.75)
          - POKETRADE_SPREAD_COEFFICIENT (0.01)
          - POKETRADE_MIN_PRICE (1.0)
          - POKETRADE_BASE_PRICE (150)
          - POKETRADE_SEED_POINTS (60)
          - POKETRADE_RANDOM_SEED (unset = random)
          - POKETRADE_LOG_LEVEL (INFO)

        Returns:
            SimulationSettings object with values loaded from environment.

        Raises:
            ValueError: If a variable cannot be parsed or fails validation.

        Usage example:
            >>> # In .env file:
            >>> # POKETRADE_STARTING_CASH=25000
            >>> # POKETRADE_RANDOM_SEED=7
            >>>
            >>> settings = SimulationSettings.from_env()
            >>> print(settings.starting_cash)  # 25000.0
        """
        random_seed_str = os.getenv("POKETRADE_RANDOM_SEED", "").strip()

        return cls(
            starting_cash=_env_float("POKETRADE_STARTING_CASH", 10_000.0),
            retention_window=_env_int("POKETRADE_RETENTION_WINDOW", 120),
            orderbook_depth=_env_int("POKETRADE_ORDERBOOK_DEPTH", 8),
            tick_interval_seconds=_env_float("POKETRADE_TICK_INTERVAL_SECONDS", 1.0),
            drift_bound=_env_float("POKETRADE_DRIFT_BOUND", 0.75),
            spread_coefficient=_env_float("POKETRADE_SPREAD_COEFFICIENT", 0.01),
            min_price=_env_float("POKETRADE_MIN_PRICE", 1.0),
            base_price=_env_float("POKETRADE_BASE_PRICE", 150.0),
            seed_points=_env_int("POKETRADE_SEED_POINTS", 60),
            random_seed=_env_int("POKETRADE_RANDOM_SEED", 0) if random_seed_str else None,
            log_level=os.getenv("POKETRADE_LOG_LEVEL", "INFO").upper(),
        )

    def get_product(self, product_id: str) -> Product | None:
        """Return the catalog entry for product_id, or None if unknown."""
        for product in self.products:
            if product.id == product_id:
                return product
        return None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}")


# Lazily-initialised singleton. Tests should construct SimulationSettings
# directly, or call reset_settings() after changing the environment.
_default_settings: SimulationSettings | None = None


def get_settings() -> SimulationSettings:
    """
    Get the global settings singleton.

    Settings are loaded from the environment on first call, then cached.

    Returns:
        Global SimulationSettings singleton.

    Raises:
        ValueError: If environment variables are malformed.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = SimulationSettings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    **Testing pattern**:
      ```python
      def test_something(monkeypatch):
          reset_settings()
          monkeypatch.setenv("POKETRADE_STARTING_CASH", "500")
          assert get_settings().starting_cash == 500.0
      ```
    """
    global _default_settings
    _default_settings = None
