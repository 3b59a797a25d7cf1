import math

import pytest
import torch

from gbm_pricer import (
    ConfigurationError,
    ExecutionError,
    MonteCarloPricer,
    NumericAnomalyError,
    ResourceError,
    RunStage,
    black_scholes_call,
    price_european_call,
)
from gbm_pricer.backends import ThreadPoolBackend, iter_groups

from conftest import make_params


def test_run_walks_every_stage(small_params):
    pricer = MonteCarloPricer(small_params, group_size=256)
    assert pricer.stage is RunStage.CONFIGURED
    assert pricer.n_groups == 4
    run = pricer.run()
    assert pricer.stage is RunStage.REPORTED
    assert run.payoffs.shape == (small_params.num_paths,)
    assert run.payoffs.dtype == torch.float32
    assert run.backend == "vectorized"
    assert run.estimate.elapsed_time >= 0.0
    assert run.estimate.elapsed_ms == int(run.estimate.elapsed_time * 1000.0)


def test_pricer_is_single_use(small_params):
    pricer = MonteCarloPricer(small_params)
    pricer.run()
    with pytest.raises(ExecutionError):
        pricer.run()


def test_estimate_is_discounted_mean(small_params):
    run = price_european_call(small_params, storage_dtype=torch.float64)
    mean = float(run.payoffs.mean())
    assert run.estimate.average_payoff == pytest.approx(mean, rel=1e-12)
    assert run.estimate.discounted_value == pytest.approx(math.exp(-0.05) * mean, rel=1e-12)


def test_degenerate_single_path_equals_intrinsic_value():
    params = make_params(initial_price=112.5, num_paths=1, num_steps=1, volatility=0.0, risk_free_rate=0.0)
    run = price_european_call(params)
    assert run.estimate.average_payoff == 12.5
    assert run.estimate.discounted_value == 12.5


def test_repeated_runs_are_bit_identical(small_params):
    first = price_european_call(small_params, group_size=128)
    second = price_european_call(small_params, group_size=128)
    assert torch.equal(first.payoffs, second.payoffs)
    assert first.estimate.discounted_value == second.estimate.discounted_value


@pytest.mark.parametrize("group_size", [1, 7, 333, 1000, 4096])
def test_grouping_does_not_change_payoffs(small_params, group_size):
    reference = price_european_call(small_params, group_size=1000, storage_dtype=torch.float64)
    run = price_european_call(small_params, group_size=group_size, storage_dtype=torch.float64)
    torch.testing.assert_close(run.payoffs, reference.payoffs, rtol=1e-10, atol=1e-10)


def test_backends_agree(small_params):
    vectorized = price_european_call(small_params, group_size=100, storage_dtype=torch.float64)
    threaded = price_european_call(
        small_params,
        group_size=100,
        storage_dtype=torch.float64,
        backend=ThreadPoolBackend(max_workers=4),
    )
    assert threaded.backend == "threads"
    assert torch.equal(threaded.payoffs, vectorized.payoffs)

    subset = make_params(num_paths=24)
    serial = price_european_call(subset, backend="serial", storage_dtype=torch.float64)
    batch = price_european_call(subset, storage_dtype=torch.float64)
    torch.testing.assert_close(serial.payoffs, batch.payoffs, rtol=1e-10, atol=1e-10)


def test_converges_to_black_scholes():
    # terminal distribution does not depend on the step count
    params = make_params(num_paths=2**20, num_steps=4, seed=20240601)
    run = price_european_call(params)
    reference = black_scholes_call(params)
    assert run.estimate.discounted_value == pytest.approx(reference, rel=0.02)


def test_price_is_monotone_in_spot():
    values = [
        price_european_call(make_params(initial_price=spot, num_paths=4096)).estimate.discounted_value
        for spot in (80.0, 90.0, 100.0, 110.0, 120.0)
    ]
    assert values == sorted(values)


def test_invalid_pricer_settings(small_params):
    with pytest.raises(ConfigurationError):
        MonteCarloPricer(small_params, group_size=0)
    with pytest.raises(ConfigurationError):
        MonteCarloPricer(small_params, storage_dtype=torch.int32)
    with pytest.raises(ConfigurationError):
        MonteCarloPricer(small_params, backend="gpu-grid")
    with pytest.raises(ConfigurationError):
        MonteCarloPricer({"num_paths": 4})


def test_allocation_failure_is_resource_error(small_params, monkeypatch):
    def exhausted(*args, **kwargs):
        raise RuntimeError("out of memory")

    pricer = MonteCarloPricer(small_params)
    monkeypatch.setattr(torch, "empty", exhausted)
    with pytest.raises(ResourceError):
        pricer.run()
    assert pricer.stage is RunStage.CONFIGURED


class _BrokenBackend:
    name = "broken"

    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on

    def dispatch(self, simulator, out, group_size):
        if self.fail_on == "dispatch":
            raise RuntimeError("launch failed")

    def synchronize(self, device):
        if self.fail_on == "synchronize":
            raise RuntimeError("device lost")


@pytest.mark.parametrize("fail_on", ["dispatch", "synchronize"])
def test_backend_failures_are_execution_errors(small_params, fail_on):
    pricer = MonteCarloPricer(small_params, backend=_BrokenBackend(fail_on))
    with pytest.raises(ExecutionError):
        pricer.run()
    assert pricer.stage is not RunStage.REPORTED


def test_thread_backend_surfaces_worker_errors(small_params):
    class FailingSimulator:
        params = small_params

        def simulate_group(self, path_ids, out):
            raise RuntimeError("worker crashed")

    backend = ThreadPoolBackend(max_workers=2)
    out = torch.empty(small_params.num_paths)
    backend.dispatch(FailingSimulator(), out, 250)
    with pytest.raises(RuntimeError):
        backend.synchronize(torch.device("cpu"))


def test_non_finite_payoffs():
    params = make_params(risk_free_rate=1000.0, volatility=0.0, num_steps=1, num_paths=4)
    unchecked = price_european_call(params, storage_dtype=torch.float64)
    assert math.isinf(unchecked.estimate.average_payoff)
    assert math.isnan(unchecked.estimate.discounted_value)
    with pytest.raises(NumericAnomalyError):
        price_european_call(params, validate_finite=True)


def test_iter_groups_covers_all_paths():
    assert list(iter_groups(10, 4)) == [(0, 4), (4, 8), (8, 12)]
    assert list(iter_groups(8, 8)) == [(0, 8)]
    with pytest.raises(ValueError):
        list(iter_groups(8, 0))
