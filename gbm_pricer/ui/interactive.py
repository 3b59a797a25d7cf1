"""Rich-powered interactive wizard for configuring a pricing run."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.theme import Theme

from ..backends import BACKEND_NAMES

_THEME = Theme(
    {
        "accent": "bright_cyan",
        "muted": "grey70",
        "warning": "gold1",
        "success": "spring_green2",
    }
)

_console = Console(theme=_THEME)


def _prompt_int(message: str, default: int, *, minimum: Optional[int] = None) -> int:
    while True:
        response = Prompt.ask(message, default=str(default), console=_console)
        try:
            value = int(response)
        except ValueError:
            _console.print("[warning]Please enter a whole number.[/warning]")
            continue
        if minimum is not None and value < minimum:
            _console.print(f"[warning]Value must be at least {minimum}.[/warning]")
            continue
        return value


def _prompt_float(message: str, default: float, *, minimum: Optional[float] = None) -> float:
    while True:
        response = Prompt.ask(message, default=f"{default}", console=_console)
        try:
            value = float(response)
        except ValueError:
            _console.print("[warning]Please enter a numeric value.[/warning]")
            continue
        if minimum is not None and value < minimum:
            _console.print(f"[warning]Value must be at least {minimum}.[/warning]")
            continue
        return value


def _prompt_optional_int(message: str, default: Optional[int]) -> Optional[int]:
    default_label = "none" if default is None else str(default)
    response = Prompt.ask(message, default=default_label, console=_console)
    if response.strip().lower() in {"", "none", "null"}:
        return None
    try:
        return int(response)
    except ValueError:
        _console.print("[warning]Invalid integer; falling back to default.[/warning]")
        return default


def _prompt_choice(message: str, choices: Iterable[str], default: str) -> str:
    return Prompt.ask(
        message,
        choices=list(choices),
        default=default,
        console=_console,
        show_choices=True,
    )


def _summarise_configuration(data: dict[str, str]) -> None:
    table = Table(title="Configuration Summary", show_lines=False, expand=True)
    table.add_column("Setting", style="accent", no_wrap=True)
    table.add_column("Value", style="muted")
    for key, value in data.items():
        table.add_row(key, value)
    _console.print(table)


def run_interactive_wizard(args: argparse.Namespace) -> argparse.Namespace:
    _console.print(Panel.fit("[accent bold]European Call Monte Carlo Pricer[/accent bold]", border_style="accent"))
    _console.print(
        "Use the prompts below to tailor the run. Press [accent]<enter>[/accent] to accept defaults.",
        style="muted",
    )

    initial_price = _prompt_float("Initial asset price", args.initial_price, minimum=0.0)
    strike = _prompt_float("Strike price", args.strike, minimum=0.0)
    maturity = _prompt_float("Time to maturity (years)", args.maturity, minimum=1e-6)
    rate = _prompt_float("Risk-free rate", args.rate)
    volatility = _prompt_float("Volatility", args.volatility, minimum=0.0)

    paths = _prompt_int("Monte Carlo paths", args.paths, minimum=1)
    steps = _prompt_int("Time steps per path", args.steps, minimum=1)
    seed = _prompt_optional_int("Random seed (or 'none' for clock-derived)", args.seed)

    backend = _prompt_choice("Scheduling backend", BACKEND_NAMES, args.backend)
    workers = args.workers
    if backend == "threads":
        workers = _prompt_optional_int("Worker threads (or 'none' for default)", args.workers)
    group_size = _prompt_int("Paths per execution group", args.group_size, minimum=1)
    device = _prompt_choice("Computation device", ["auto", "cpu", "cuda"], args.device)
    precision = _prompt_choice("Result buffer precision", ["float32", "float64"], args.precision)

    validate_finite = Confirm.ask(
        "Reject runs with non-finite payoffs?",
        default=args.validate_finite,
        console=_console,
    )
    summary = Confirm.ask("Print the statistical summary?", default=args.summary, console=_console)

    plot_dir: Optional[Path] = args.plot_dir
    hist_bins = args.hist_bins
    if Confirm.ask("Save payoff and convergence charts?", default=plot_dir is not None, console=_console):
        default_dir = plot_dir or Path("figures")
        plot_dir = Path(Prompt.ask("Directory for charts", default=str(default_dir), console=_console)).expanduser()
        hist_bins = _prompt_int("Histogram bins", args.hist_bins, minimum=1)
    else:
        plot_dir = None
    show = Confirm.ask("Show charts in a window?", default=args.show, console=_console)

    summary_data = {
        "Initial price": f"{initial_price}",
        "Strike": f"{strike}",
        "Maturity": f"{maturity}",
        "Rate": f"{rate}",
        "Volatility": f"{volatility}",
        "Paths": f"{paths}",
        "Steps": f"{steps}",
        "Seed": "clock" if seed is None else f"{seed}",
        "Backend": backend,
        "Group size": f"{group_size}",
        "Device": device,
        "Precision": precision,
        "Charts": str(plot_dir) if plot_dir is not None else "No",
    }
    _summarise_configuration(summary_data)

    return argparse.Namespace(
        initial_price=initial_price,
        strike=strike,
        maturity=maturity,
        rate=rate,
        volatility=volatility,
        paths=paths,
        steps=steps,
        seed=seed,
        group_size=group_size,
        backend=backend,
        workers=workers,
        device=device,
        precision=precision,
        validate_finite=validate_finite,
        summary=summary,
        plot_dir=plot_dir,
        show=show,
        hist_bins=hist_bins,
        interactive=False,
    )
