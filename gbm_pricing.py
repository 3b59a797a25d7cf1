#!/usr/bin/env python3
"""CLI launcher for parallel Monte Carlo pricing of a European call."""
from __future__ import annotations

import argparse
from pathlib import Path
import sys
import traceback
from typing import Optional, Sequence

import matplotlib.pyplot as plt

from gbm_pricer import PricingError, black_scholes_call, summarize_payoffs
from gbm_pricer.backends import BACKEND_NAMES
from gbm_pricer.config import (
    DEFAULT_INITIAL_PRICE,
    DEFAULT_NUM_PATHS,
    DEFAULT_NUM_STEPS,
    DEFAULT_RISK_FREE_RATE,
    DEFAULT_STRIKE_PRICE,
    DEFAULT_TIME_TO_MATURITY,
    DEFAULT_VOLATILITY,
)
from gbm_pricer.pricer import DEFAULT_GROUP_SIZE
from gbm_pricer.runtime import create_pricing_context, fmt
from gbm_pricer.statistics import convergence_points
from gbm_pricer.visualization import plot_convergence, plot_payoff_distribution


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Price a European call by Monte Carlo simulation of GBM paths with PyTorch.",
    )
    parser.add_argument("--initial-price", type=float, default=DEFAULT_INITIAL_PRICE, help="Initial asset price.")
    parser.add_argument("--strike", type=float, default=DEFAULT_STRIKE_PRICE, help="Strike price.")
    parser.add_argument("--maturity", type=float, default=DEFAULT_TIME_TO_MATURITY, help="Time to maturity in years.")
    parser.add_argument("--rate", type=float, default=DEFAULT_RISK_FREE_RATE, help="Continuously compounded risk-free rate.")
    parser.add_argument("--volatility", type=float, default=DEFAULT_VOLATILITY, help="Annualised volatility.")
    parser.add_argument("--paths", type=int, default=DEFAULT_NUM_PATHS, help="Number of Monte Carlo paths.")
    parser.add_argument("--steps", type=int, default=DEFAULT_NUM_STEPS, help="Number of time steps per path.")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="RNG seed for reproducible runs (default: derived from the clock).",
    )
    parser.add_argument(
        "--group-size",
        type=int,
        default=DEFAULT_GROUP_SIZE,
        help="Paths simulated per execution group.",
    )
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        default="vectorized",
        help="Scheduling backend used to dispatch execution groups.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for the threads backend.",
    )
    parser.add_argument(
        "--device",
        type=str,
        default="auto",
        help="PyTorch device: auto, cpu, cuda, or explicit device string.",
    )
    parser.add_argument(
        "--precision",
        choices=("float32", "float64"),
        default="float32",
        help="Storage precision of the per-path payoff buffer.",
    )
    parser.add_argument(
        "--validate-finite",
        action="store_true",
        help="Fail the run if any path payoff is NaN or infinite.",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print standard error, confidence interval and the Black-Scholes reference.",
    )
    parser.add_argument(
        "--plot-dir",
        type=Path,
        default=None,
        help="Directory where payoff and convergence charts are saved.",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display charts interactively after pricing.",
    )
    parser.add_argument(
        "--hist-bins",
        type=int,
        default=60,
        help="Number of bins for the payoff histogram.",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Launch a rich interactive wizard to choose pricing options.",
    )
    return parser.parse_args(argv)


def format_diagnostic(exc: BaseException) -> str:
    """Error string plus the file and line that raised it."""
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return f"{type(exc).__name__}: {exc}"
    origin = frames[-1]
    return f"{type(exc).__name__}: {exc} in {origin.filename} at line {origin.lineno}"


def execute_pricing(args: argparse.Namespace, *, suppress_output: bool = False) -> dict:
    messages: list[str] = []
    saved_paths: list[Path] = []

    def log(message: str = "") -> None:
        messages.append(message)
        if not suppress_output:
            print(message)

    context = create_pricing_context(
        initial_price=args.initial_price,
        strike_price=args.strike,
        time_to_maturity=args.maturity,
        risk_free_rate=args.rate,
        volatility=args.volatility,
        num_paths=args.paths,
        num_steps=args.steps,
        seed=args.seed,
        group_size=args.group_size,
        backend=args.backend,
        workers=args.workers,
        device=args.device,
        precision=args.precision,
        validate_finite=args.validate_finite,
    )
    run = context.pricer.run()
    params = context.params
    estimate = run.estimate

    log(f"Option price: {fmt(estimate.discounted_value)}")
    log(f"Execution time: {estimate.elapsed_ms} ms")

    summary = summarize_payoffs(run.payoffs, discount_factor=params.discount_factor)
    reference = black_scholes_call(params)

    if args.summary:
        log("")
        log(f"Device: {context.device}")
        log(f"Backend: {run.backend} ({context.pricer.n_groups} groups of {run.group_size})")
        log(f"Precision: {args.precision}")
        log(f"Seed: {params.seed}" + ("" if context.seed_was_fixed else " (clock-derived)"))
        log(f"Paths: {params.num_paths}")
        log(f"Steps: {params.num_steps}")
        log(f"Average payoff: {fmt(estimate.average_payoff)}")
        log(f"Standard error: {fmt(summary.standard_error)}")
        log(
            "95% CI for price: ("
            f"{fmt(summary.confidence_interval[0])}, {fmt(summary.confidence_interval[1])})"
        )
        log(f"Black-Scholes price: {fmt(reference)}")
        if reference > 0:
            log(f"Relative error: {fmt((estimate.discounted_value - reference) / reference)}")

    figures: list[plt.Figure] = []
    if args.plot_dir is not None or args.show:
        fig_hist, _ = plot_payoff_distribution(run.payoffs, bins=args.hist_bins)
        counts, estimates = convergence_points(run.payoffs, discount_factor=params.discount_factor)
        fig_conv, _ = plot_convergence(counts, estimates, reference=reference)
        figures.extend([fig_hist, fig_conv])

        if args.plot_dir is not None:
            save_dir = args.plot_dir.expanduser()
            save_dir.mkdir(parents=True, exist_ok=True)
            path_hist = save_dir / "payoff_hist.png"
            path_conv = save_dir / "convergence.png"
            fig_hist.savefig(path_hist, dpi=150, bbox_inches="tight")
            fig_conv.savefig(path_conv, dpi=150, bbox_inches="tight")
            saved_paths.extend([path_hist, path_conv])
            if args.summary:
                log("")
                log("Saved:")
                log(f"  {path_hist}")
                log(f"  {path_conv}")

    if args.show:
        plt.show()
    else:
        for fig in figures:
            plt.close(fig)

    return {
        "params": params,
        "run": run,
        "estimate": estimate,
        "summary": summary,
        "reference": reference,
        "messages": messages,
        "saved_paths": saved_paths,
    }


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.interactive:
        from gbm_pricer.ui.interactive import run_interactive_wizard

        args = run_interactive_wizard(args)

    try:
        execute_pricing(args)
    except PricingError as exc:
        print(format_diagnostic(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
