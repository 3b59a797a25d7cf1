"""GBM path simulation kernel for European call payoffs using PyTorch."""
from __future__ import annotations

import math
from typing import Optional

import torch

from .config import SimulationParameters
from .rng import VARIATES_PER_BLOCK, standard_normals


class GBMPathSimulator:
    """Evolves independent GBM paths with the log-Euler recurrence.

    Each path id consumes its own Philox subsequence, so a payoff depends only
    on ``(params, path_id)`` and never on which group or device computed it.
    Prices are carried in float64; payoffs are cast to the buffer dtype on write.
    """

    def __init__(
        self,
        params: SimulationParameters,
        *,
        device: torch.device = torch.device("cpu"),
        dtype: torch.dtype = torch.float64,
    ) -> None:
        self.params = params
        self.device = device
        self.dtype = dtype

        self.delta_t = params.delta_t
        self.drift = (params.risk_free_rate - 0.5 * params.volatility**2) * self.delta_t
        self.diffusion = params.volatility * math.sqrt(self.delta_t)
        self.n_blocks = -(-params.num_steps // VARIATES_PER_BLOCK)

    def terminal_prices(self, path_ids: torch.Tensor) -> torch.Tensor:
        """Terminal asset price for every id in ``path_ids``."""
        params = self.params
        prices = torch.full(
            path_ids.shape,
            fill_value=params.initial_price,
            dtype=self.dtype,
            device=path_ids.device,
        )
        remaining = params.num_steps
        for block in range(self.n_blocks):
            shocks = standard_normals(params.seed, path_ids, block, dtype=self.dtype)
            for lane in range(min(VARIATES_PER_BLOCK, remaining)):
                prices = prices * torch.exp(self.drift + self.diffusion * shocks[:, lane])
            remaining -= VARIATES_PER_BLOCK
        return prices

    def payoffs(self, path_ids: torch.Tensor) -> torch.Tensor:
        # NaN passes through clamp_min
        return torch.clamp_min(self.terminal_prices(path_ids) - self.params.strike_price, 0.0)

    def simulate_group(self, path_ids: torch.Tensor, out: torch.Tensor) -> None:
        """Write the payoff of each id in ``path_ids`` into ``out[path_id]``.

        Ids at or beyond ``num_paths`` are over-provisioned lanes and are skipped.
        """
        path_ids = path_ids.to(device=out.device, dtype=torch.int64)
        active = path_ids[path_ids < self.params.num_paths]
        if active.numel() == 0:
            return
        out[active] = self.payoffs(active).to(out.dtype)

    def simulate_path(self, path_id: int) -> Optional[float]:
        """Payoff of a single path, or ``None`` when ``path_id`` is out of range."""
        if path_id < 0:
            raise ValueError("Path id must be non-negative.")
        if path_id >= self.params.num_paths:
            return None
        ids = torch.tensor([path_id], dtype=torch.int64, device=self.device)
        return float(self.payoffs(ids)[0].cpu())
