"""Parallel Monte Carlo pricing of European calls under GBM."""
from .config import SimulationParameters, build_default_parameters
from .errors import (
    ConfigurationError,
    ExecutionError,
    NumericAnomalyError,
    PricingError,
    ResourceError,
)
from .pricer import MonteCarloPricer, RunStage, price_european_call
from .results import PricingEstimate, PricingRun
from .simulator import GBMPathSimulator
from .statistics import MonteCarloSummary, black_scholes_call, summarize_payoffs

__all__ = [
    "SimulationParameters",
    "build_default_parameters",
    "GBMPathSimulator",
    "MonteCarloPricer",
    "RunStage",
    "price_european_call",
    "PricingEstimate",
    "PricingRun",
    "MonteCarloSummary",
    "summarize_payoffs",
    "black_scholes_call",
    "PricingError",
    "ConfigurationError",
    "ResourceError",
    "ExecutionError",
    "NumericAnomalyError",
]
