"""Runtime helpers shared by the CLI and the interactive configurator."""
from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Optional

import torch

from .backends import create_backend
from .config import MAX_SEED, SimulationParameters
from .errors import ConfigurationError, ExecutionError
from .pricer import MonteCarloPricer


@dataclass(frozen=True)
class PricingContext:
    """Holds the configured pricer and metadata for a run."""

    params: SimulationParameters
    pricer: MonteCarloPricer
    device: torch.device
    dtype: torch.dtype
    seed_was_fixed: bool


def resolve_device(device_arg: str) -> torch.device:
    if device_arg == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        return torch.device("cpu")
    try:
        device = torch.device(device_arg)
    except RuntimeError as exc:
        raise ConfigurationError(f"Unknown device {device_arg!r}.") from exc
    if device.type == "cuda" and not torch.cuda.is_available():
        raise ExecutionError("CUDA requested but not available.")
    return device


def precision_to_dtype(precision: str) -> torch.dtype:
    return torch.float64 if precision == "float64" else torch.float32


def resolve_seed(seed: Optional[int]) -> int:
    """Use the given seed, or derive one from the wall clock."""
    if seed is not None:
        return seed
    return time.time_ns() & MAX_SEED


def create_pricing_context(
    *,
    initial_price: float,
    strike_price: float,
    time_to_maturity: float,
    risk_free_rate: float,
    volatility: float,
    num_paths: int,
    num_steps: int,
    seed: Optional[int],
    group_size: int,
    backend: str,
    workers: Optional[int],
    device: str,
    precision: str,
    validate_finite: bool,
) -> PricingContext:
    params = SimulationParameters(
        initial_price=initial_price,
        strike_price=strike_price,
        time_to_maturity=time_to_maturity,
        risk_free_rate=risk_free_rate,
        volatility=volatility,
        num_paths=num_paths,
        num_steps=num_steps,
        seed=resolve_seed(seed),
    )
    resolved_device = resolve_device(device)
    dtype = precision_to_dtype(precision)

    try:
        scheduler = create_backend(backend, max_workers=workers)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    pricer = MonteCarloPricer(
        params,
        device=resolved_device,
        storage_dtype=dtype,
        group_size=group_size,
        backend=scheduler,
        validate_finite=validate_finite,
    )
    return PricingContext(
        params=params,
        pricer=pricer,
        device=resolved_device,
        dtype=dtype,
        seed_was_fixed=seed is not None,
    )


def fmt(value: float) -> str:
    return f"{value:.6f}"
