"""Monte Carlo summary statistics and the Black-Scholes reference price."""
from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np
import torch

from .config import SimulationParameters


@dataclass
class MonteCarloSummary:
    mean: float
    standard_deviation: float
    standard_error: float
    confidence_interval: tuple[float, float]


def summarize_payoffs(payoffs: torch.Tensor, *, discount_factor: float = 1.0) -> MonteCarloSummary:
    """Summarise the discounted price estimate implied by per-path payoffs."""
    if payoffs.numel() == 0:
        raise ValueError("Cannot summarise an empty payoff buffer.")
    discounted = payoffs.to(torch.float64) * discount_factor
    mean = discounted.mean()
    std = discounted.std(unbiased=True) if discounted.numel() > 1 else torch.zeros_like(mean)
    stderr = std / math.sqrt(discounted.numel())
    ci_low = mean - 1.96 * stderr
    ci_high = mean + 1.96 * stderr
    return MonteCarloSummary(
        mean=float(mean.cpu()),
        standard_deviation=float(std.cpu()),
        standard_error=float(stderr.cpu()),
        confidence_interval=(float(ci_low.cpu()), float(ci_high.cpu())),
    )


def black_scholes_call(params: SimulationParameters) -> float:
    """Closed-form European call price for the same market parameters."""
    spot = params.initial_price
    strike = params.strike_price
    maturity = params.time_to_maturity
    discounted_strike = strike * params.discount_factor

    if spot == 0.0:
        return 0.0
    if strike == 0.0:
        return spot
    if params.volatility == 0.0:
        return max(spot - discounted_strike, 0.0)

    vol_sqrt_t = params.volatility * math.sqrt(maturity)
    d1 = (math.log(spot / strike) + (params.risk_free_rate + 0.5 * params.volatility**2) * maturity) / vol_sqrt_t
    d2 = d1 - vol_sqrt_t
    nd1, nd2 = torch.special.ndtr(torch.tensor([d1, d2], dtype=torch.float64)).tolist()
    return spot * nd1 - discounted_strike * nd2


def convergence_points(
    payoffs: torch.Tensor,
    *,
    discount_factor: float = 1.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Running discounted estimate after 1, 2, 4, ... paths and after all of them."""
    n = payoffs.numel()
    if n == 0:
        raise ValueError("Cannot compute convergence of an empty payoff buffer.")
    counts = [1 << k for k in range(n.bit_length()) if (1 << k) <= n]
    if counts[-1] != n:
        counts.append(n)
    running = torch.cumsum(payoffs.to(torch.float64), dim=0).cpu().numpy()
    count_array = np.asarray(counts, dtype=np.int64)
    estimates = running[count_array - 1] / count_array * discount_factor
    return count_array, estimates
