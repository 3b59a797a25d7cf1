"""Validated simulation parameters for European call pricing."""
from __future__ import annotations

from dataclasses import dataclass
import math

from .errors import ConfigurationError

MAX_SEED = 2**64 - 1

DEFAULT_INITIAL_PRICE = 100.0
DEFAULT_STRIKE_PRICE = 100.0
DEFAULT_TIME_TO_MATURITY = 1.0
DEFAULT_RISK_FREE_RATE = 0.05
DEFAULT_VOLATILITY = 0.2
DEFAULT_NUM_PATHS = 2**20
DEFAULT_NUM_STEPS = 100


def _require_finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}.")
    return value


@dataclass(frozen=True)
class SimulationParameters:
    """Market and Monte Carlo settings for one pricing run.

    ``seed`` selects the Philox key shared by every path; each path id picks
    its own subsequence, so the same seed reproduces the same payoffs.
    """

    initial_price: float
    strike_price: float
    time_to_maturity: float
    risk_free_rate: float
    volatility: float
    num_paths: int
    num_steps: int
    seed: int

    def __post_init__(self) -> None:
        initial_price = _require_finite("Initial price", self.initial_price)
        strike_price = _require_finite("Strike price", self.strike_price)
        maturity = _require_finite("Time to maturity", self.time_to_maturity)
        rate = _require_finite("Risk-free rate", self.risk_free_rate)
        volatility = _require_finite("Volatility", self.volatility)

        if initial_price < 0:
            raise ConfigurationError("Initial price must be non-negative.")
        if strike_price < 0:
            raise ConfigurationError("Strike price must be non-negative.")
        if maturity <= 0:
            raise ConfigurationError("Time to maturity must be positive.")
        if volatility < 0:
            raise ConfigurationError("Volatility must be non-negative.")
        if int(self.num_paths) != self.num_paths or self.num_paths <= 0:
            raise ConfigurationError("Number of paths must be a positive integer.")
        if int(self.num_steps) != self.num_steps or self.num_steps <= 0:
            raise ConfigurationError("Number of steps per path must be a positive integer.")
        if int(self.seed) != self.seed or not 0 <= self.seed <= MAX_SEED:
            raise ConfigurationError(f"Seed must be an integer in [0, {MAX_SEED}].")

        object.__setattr__(self, "initial_price", initial_price)
        object.__setattr__(self, "strike_price", strike_price)
        object.__setattr__(self, "time_to_maturity", maturity)
        object.__setattr__(self, "risk_free_rate", rate)
        object.__setattr__(self, "volatility", volatility)
        object.__setattr__(self, "num_paths", int(self.num_paths))
        object.__setattr__(self, "num_steps", int(self.num_steps))
        object.__setattr__(self, "seed", int(self.seed))

    @property
    def delta_t(self) -> float:
        return self.time_to_maturity / self.num_steps

    @property
    def discount_factor(self) -> float:
        """Present-value factor exp(-r T)."""
        return math.exp(-self.risk_free_rate * self.time_to_maturity)


def build_default_parameters(*, seed: int, **overrides: float) -> SimulationParameters:
    """Factory for the reference at-the-money one-year call."""
    values = {
        "initial_price": DEFAULT_INITIAL_PRICE,
        "strike_price": DEFAULT_STRIKE_PRICE,
        "time_to_maturity": DEFAULT_TIME_TO_MATURITY,
        "risk_free_rate": DEFAULT_RISK_FREE_RATE,
        "volatility": DEFAULT_VOLATILITY,
        "num_paths": DEFAULT_NUM_PATHS,
        "num_steps": DEFAULT_NUM_STEPS,
    }
    unknown = set(overrides) - set(values)
    if unknown:
        raise ConfigurationError(f"Unknown parameter(s): {', '.join(sorted(unknown))}.")
    values.update(overrides)
    return SimulationParameters(seed=seed, **values)
