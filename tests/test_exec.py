from pathlib import Path
from types import SimpleNamespace

import pytest

import gbm_pricing
from gbm_pricing import execute_pricing, format_diagnostic, main, parse_args


def _namespace(**overrides) -> SimpleNamespace:
    values = dict(
        initial_price=100.0,
        strike=100.0,
        maturity=1.0,
        rate=0.05,
        volatility=0.2,
        paths=4096,
        steps=12,
        seed=42,
        group_size=1024,
        backend="vectorized",
        workers=None,
        device="cpu",
        precision="float32",
        validate_finite=False,
        summary=False,
        plot_dir=None,
        show=False,
        hist_bins=30,
        interactive=False,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_default_output_is_price_and_time(capsys):
    result = execute_pricing(_namespace())
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("Option price: ")
    assert float(lines[0].split(": ")[1]) == pytest.approx(result["estimate"].discounted_value, abs=1e-6)
    assert lines[1] == f"Execution time: {result['estimate'].elapsed_ms} ms"
    assert result["messages"] == lines


def test_fixed_seed_reproduces_price():
    first = execute_pricing(_namespace(), suppress_output=True)
    second = execute_pricing(_namespace(backend="threads", workers=2), suppress_output=True)
    assert first["estimate"].discounted_value == second["estimate"].discounted_value


def test_summary_and_charts(tmp_path: Path):
    result = execute_pricing(
        _namespace(summary=True, plot_dir=tmp_path / "charts"),
        suppress_output=True,
    )
    messages = "\n".join(result["messages"])
    assert "Black-Scholes price: 10.450584" in messages
    assert "Seed: 42" in messages
    assert "clock-derived" not in messages
    assert [path.name for path in result["saved_paths"]] == ["payoff_hist.png", "convergence.png"]
    for path in result["saved_paths"]:
        assert path.exists()


def test_clock_seed_is_reported():
    result = execute_pricing(_namespace(seed=None, summary=True, paths=64), suppress_output=True)
    assert any(message.endswith("(clock-derived)") for message in result["messages"])


def test_parse_args_defaults():
    args = parse_args([])
    assert args.paths == 2**20
    assert args.steps == 100
    assert args.seed is None
    assert args.backend == "vectorized"
    assert args.precision == "float32"
    assert args.plot_dir is None


def test_invalid_configuration_exits_with_diagnostic(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--maturity", "0", "--paths", "16", "--seed", "1", "--device", "cpu"])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("ConfigurationError: Time to maturity must be positive.")
    assert "config.py at line" in err


def test_main_prints_two_lines(capsys):
    main(["--paths", "256", "--steps", "8", "--seed", "3", "--device", "cpu"])
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2


def test_format_diagnostic_without_traceback():
    assert format_diagnostic(RuntimeError("boom")) == "RuntimeError: boom"
    assert gbm_pricing.__doc__
