"""Result dataclasses for Monte Carlo pricing runs."""
from __future__ import annotations

from dataclasses import dataclass

import torch

from .config import SimulationParameters


@dataclass(frozen=True)
class PricingEstimate:
    average_payoff: float
    discounted_value: float
    elapsed_time: float

    @property
    def elapsed_ms(self) -> int:
        """Elapsed wall-clock time in whole milliseconds."""
        return int(self.elapsed_time * 1000.0)


@dataclass(frozen=True)
class PricingRun:
    """A finished run: the estimate plus the per-path payoffs it was reduced from."""

    params: SimulationParameters
    estimate: PricingEstimate
    payoffs: torch.Tensor
    device: torch.device
    backend: str
    group_size: int
