"""
Tests for poketrade/config/settings.py

These tests verify defaults, environment loading, validation, and the
settings singleton. Every test clears POKETRADE_* variables first so that a
developer's local .env cannot leak into the results.
"""

import pytest

from poketrade.config.settings import (
    DEFAULT_PRODUCTS,
    SimulationSettings,
    get_settings,
    reset_settings,
)


ENV_VARS = [
    "POKETRADE_STARTING_CASH",
    "POKETRADE_RETENTION_WINDOW",
    "POKETRADE_ORDERBOOK_DEPTH",
    "POKETRADE_TICK_INTERVAL_SECONDS",
    "POKETRADE_DRIFT_BOUND",
    "POKETRADE_SPREAD_COEFFICIENT",
    "POKETRADE_MIN_PRICE",
    "POKETRADE_BASE_PRICE",
    "POKETRADE_SEED_POINTS",
    "POKETRADE_RANDOM_SEED",
    "POKETRADE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_defaults():
    settings = SimulationSettings()

    assert settings.starting_cash == 10_000.0
    assert settings.retention_window == 120
    assert settings.orderbook_depth == 8
    assert settings.tick_interval_seconds == 1.0
    assert settings.drift_bound == 0.75
    assert settings.spread_coefficient == 0.01
    assert settings.min_price == 1.0
    assert settings.base_price == 150.0
    assert settings.seed_points == 60
    assert settings.random_seed is None
    assert settings.log_level == "INFO"
    assert settings.products == DEFAULT_PRODUCTS


def test_from_env_without_variables_matches_defaults():
    assert SimulationSettings.from_env() == SimulationSettings()


def test_from_env_reads_variables(monkeypatch):
    monkeypatch.setenv("POKETRADE_STARTING_CASH", "25000")
    monkeypatch.setenv("POKETRADE_RETENTION_WINDOW", "30")
    monkeypatch.setenv("POKETRADE_ORDERBOOK_DEPTH", "4")
    monkeypatch.setenv("POKETRADE_TICK_INTERVAL_SECONDS", "0.25")
    monkeypatch.setenv("POKETRADE_RANDOM_SEED", "7")
    monkeypatch.setenv("POKETRADE_LOG_LEVEL", "debug")

    settings = SimulationSettings.from_env()

    assert settings.starting_cash == 25_000.0
    assert settings.retention_window == 30
    assert settings.orderbook_depth == 4
    assert settings.tick_interval_seconds == 0.25
    assert settings.random_seed == 7
    assert settings.log_level == "DEBUG"


def test_blank_random_seed_means_unseeded(monkeypatch):
    monkeypatch.setenv("POKETRADE_RANDOM_SEED", "   ")

    assert SimulationSettings.from_env().random_seed is None


@pytest.mark.parametrize(
    "name, raw",
    [
        ("POKETRADE_RETENTION_WINDOW", "lots"),
        ("POKETRADE_STARTING_CASH", "ten thousand"),
        ("POKETRADE_RANDOM_SEED", "1.5"),
    ],
)
def test_from_env_rejects_malformed_values(monkeypatch, name, raw):
    monkeypatch.setenv(name, raw)

    with pytest.raises(ValueError, match=name):
        SimulationSettings.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"starting_cash": -1.0},
        {"retention_window": 0},
        {"orderbook_depth": 0},
        {"tick_interval_seconds": 0.0},
        {"drift_bound": -0.5},
        {"spread_coefficient": 0.0},
        {"min_price": 0.0},
        {"spread_coefficient": 0.0001},
        {"spread_coefficient": 0.001, "min_price": 0.1},
        {"base_price": 0.5},
        {"seed_points": 0},
        {"log_level": "LOUD"},
        {"products": ()},
    ],
)
def test_validation_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        SimulationSettings(**kwargs)


def test_from_env_validates_loaded_values(monkeypatch):
    monkeypatch.setenv("POKETRADE_TICK_INTERVAL_SECONDS", "0")

    with pytest.raises(ValueError, match="tick_interval_seconds"):
        SimulationSettings.from_env()


def test_get_settings_is_cached_until_reset(monkeypatch):
    monkeypatch.setenv("POKETRADE_STARTING_CASH", "500")
    first = get_settings()

    monkeypatch.setenv("POKETRADE_STARTING_CASH", "900")
    assert get_settings() is first
    assert get_settings().starting_cash == 500.0

    reset_settings()
    assert get_settings().starting_cash == 900.0


def test_get_product():
    settings = SimulationSettings()

    product = settings.get_product("BASE_CHAR_PSA10")

    assert product.name == "Base Set Charizard PSA10"
    assert settings.get_product("UNKNOWN") is None


def test_narrow_spread_allowed_for_single_level_book():
    settings = SimulationSettings(spread_coefficient=0.0001, orderbook_depth=1)

    assert settings.spread_coefficient == 0.0001
