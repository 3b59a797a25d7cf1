"""Charts for Monte Carlo pricing runs."""
from __future__ import annotations

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import torch


__all__ = (
    "plot_payoff_distribution",
    "plot_convergence",
)


def plot_payoff_distribution(
    payoffs: torch.Tensor,
    *,
    bins: int = 60,
    ax: plt.Axes | None = None,
) -> Tuple[plt.Figure, plt.Axes]:
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    data = payoffs.detach().cpu().numpy()
    in_the_money = data[data > 0]
    ax.hist(in_the_money, bins=bins, alpha=0.75, color="#1f77b4", edgecolor="black")
    share = in_the_money.size / max(data.size, 1)
    ax.set_xlabel("Payoff at maturity")
    ax.set_ylabel("Frequency")
    ax.set_title(f"In-the-money payoffs ({share:.1%} of paths)")
    ax.grid(True, alpha=0.2)
    return fig, ax


def plot_convergence(
    counts: np.ndarray,
    estimates: np.ndarray,
    *,
    reference: Optional[float] = None,
    ax: plt.Axes | None = None,
) -> Tuple[plt.Figure, plt.Axes]:
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    ax.plot(counts, estimates, marker="o", markersize=3, linewidth=1.2, label="Monte Carlo")
    if reference is not None:
        ax.axhline(reference, color="black", linestyle="--", linewidth=1.0, label="Black-Scholes")
    ax.set_xscale("log", base=2)
    ax.set_xlabel("Paths")
    ax.set_ylabel("Discounted price")
    ax.set_title("Convergence of the call estimate")
    ax.legend()
    ax.grid(True, alpha=0.2)
    return fig, ax
