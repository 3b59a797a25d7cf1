"""Exception hierarchy for Monte Carlo option pricing runs."""
from __future__ import annotations


class PricingError(Exception):
    """Base class for every failure that aborts a pricing run."""


class ConfigurationError(PricingError, ValueError):
    """Simulation parameters violate an invariant; raised before dispatch."""


class ResourceError(PricingError, RuntimeError):
    """The path-result buffer could not be allocated on the target device."""


class ExecutionError(PricingError, RuntimeError):
    """Parallel dispatch or synchronisation failed, or a run was driven out of order."""


class NumericAnomalyError(PricingError, ArithmeticError):
    """Non-finite payoffs were found when finite-value validation is enabled."""
