"""Aggregation of per-path payoffs into a discounted call price."""
from __future__ import annotations

from enum import Enum
import time

import torch

from .backends import VectorizedBackend, create_backend
from .config import SimulationParameters
from .errors import ConfigurationError, ExecutionError, NumericAnomalyError, PricingError, ResourceError
from .results import PricingEstimate, PricingRun
from .simulator import GBMPathSimulator

DEFAULT_GROUP_SIZE = 2**16


class RunStage(Enum):
    CONFIGURED = 0
    DISPATCHED = 1
    SYNCHRONIZED = 2
    REDUCED = 3
    REPORTED = 4


class MonteCarloPricer:
    """Runs a single pricing job: allocate, dispatch, barrier, reduce, discount.

    The run moves through :class:`RunStage` strictly forward. Any failure aborts
    the job; a pricer is single-use and never reports a partial estimate.
    """

    def __init__(
        self,
        params: SimulationParameters,
        *,
        device: torch.device = torch.device("cpu"),
        storage_dtype: torch.dtype = torch.float32,
        group_size: int = DEFAULT_GROUP_SIZE,
        backend=None,
        validate_finite: bool = False,
    ) -> None:
        if not isinstance(params, SimulationParameters):
            raise ConfigurationError("Pricer requires SimulationParameters.")
        if group_size <= 0:
            raise ConfigurationError("Group size must be positive.")
        if storage_dtype not in (torch.float32, torch.float64):
            raise ConfigurationError("Storage precision must be float32 or float64.")

        self.params = params
        self.device = device
        self.storage_dtype = storage_dtype
        self.group_size = group_size
        if isinstance(backend, str):
            try:
                backend = create_backend(backend)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        self.backend = backend if backend is not None else VectorizedBackend()
        self.validate_finite = validate_finite
        self.stage = RunStage.CONFIGURED

    @property
    def n_groups(self) -> int:
        return -(-self.params.num_paths // self.group_size)

    def _advance(self, stage: RunStage) -> None:
        if stage.value != self.stage.value + 1:
            raise ExecutionError(f"Cannot move from {self.stage.name} to {stage.name}.")
        self.stage = stage

    def allocate(self) -> torch.Tensor:
        try:
            return torch.empty(self.params.num_paths, dtype=self.storage_dtype, device=self.device)
        except RuntimeError as exc:
            raise ResourceError(
                f"Failed to allocate {self.params.num_paths} path results on {self.device}: {exc}"
            ) from exc

    def _check_finite(self, payoffs: torch.Tensor) -> None:
        bad = int((~torch.isfinite(payoffs)).sum())
        if bad:
            raise NumericAnomalyError(f"{bad} of {payoffs.numel()} path payoffs are not finite.")

    def run(self) -> PricingRun:
        if self.stage is not RunStage.CONFIGURED:
            raise ExecutionError("Pricer has already been run; create a new one.")

        payoffs = self.allocate()
        start = time.perf_counter()

        simulator = GBMPathSimulator(self.params, device=self.device)
        try:
            self.backend.dispatch(simulator, payoffs, self.group_size)
        except PricingError:
            raise
        except RuntimeError as exc:
            raise ExecutionError(f"Path dispatch failed: {exc}") from exc
        self._advance(RunStage.DISPATCHED)

        try:
            self.backend.synchronize(self.device)
        except PricingError:
            raise
        except RuntimeError as exc:
            raise ExecutionError(f"Synchronisation failed: {exc}") from exc
        self._advance(RunStage.SYNCHRONIZED)

        if self.validate_finite:
            self._check_finite(payoffs)
        average_payoff = float(payoffs.to(torch.float64).mean().cpu())
        self._advance(RunStage.REDUCED)

        discounted_value = self.params.discount_factor * average_payoff
        elapsed = time.perf_counter() - start
        self._advance(RunStage.REPORTED)

        return PricingRun(
            params=self.params,
            estimate=PricingEstimate(
                average_payoff=average_payoff,
                discounted_value=discounted_value,
                elapsed_time=elapsed,
            ),
            payoffs=payoffs,
            device=self.device,
            backend=getattr(self.backend, "name", type(self.backend).__name__),
            group_size=self.group_size,
        )


def price_european_call(
    params: SimulationParameters,
    *,
    device: torch.device = torch.device("cpu"),
    storage_dtype: torch.dtype = torch.float32,
    group_size: int = DEFAULT_GROUP_SIZE,
    backend=None,
    validate_finite: bool = False,
) -> PricingRun:
    return MonteCarloPricer(
        params,
        device=device,
        storage_dtype=storage_dtype,
        group_size=group_size,
        backend=backend,
        validate_finite=validate_finite,
    ).run()
