"""Shared fixtures for the pricing test suite."""
from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest

from gbm_pricer import SimulationParameters


@pytest.fixture
def small_params() -> SimulationParameters:
    """At-the-money call on a grid small enough for per-path checks."""
    return make_params()


def make_params(**overrides) -> SimulationParameters:
    values = dict(
        initial_price=100.0,
        strike_price=100.0,
        time_to_maturity=1.0,
        risk_free_rate=0.05,
        volatility=0.2,
        num_paths=1000,
        num_steps=10,
        seed=1234,
    )
    values.update(overrides)
    return SimulationParameters(**values)
