"""Scheduling backends that fan the path kernel out over execution groups."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterator, Optional

import torch

from .simulator import GBMPathSimulator


def iter_groups(num_paths: int, group_size: int) -> Iterator[tuple[int, int]]:
    """Yield ``(start, stop)`` lane ranges; the last group may overshoot ``num_paths``."""
    if group_size <= 0:
        raise ValueError("Group size must be positive.")
    for start in range(0, num_paths, group_size):
        yield start, start + group_size


def _group_ids(start: int, stop: int, device: torch.device) -> torch.Tensor:
    return torch.arange(start, stop, dtype=torch.int64, device=device)


def synchronize_device(device: torch.device) -> None:
    if device.type == "cuda":
        torch.cuda.synchronize(device)


class VectorizedBackend:
    """Launches one tensor kernel per group on the simulator's device."""

    name = "vectorized"

    def dispatch(self, simulator: GBMPathSimulator, out: torch.Tensor, group_size: int) -> None:
        for start, stop in iter_groups(simulator.params.num_paths, group_size):
            simulator.simulate_group(_group_ids(start, stop, out.device), out)

    def synchronize(self, device: torch.device) -> None:
        synchronize_device(device)


class ThreadPoolBackend:
    """Submits groups to a thread pool; ``synchronize`` joins every group."""

    name = "threads"

    def __init__(self, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and max_workers <= 0:
            raise ValueError("Number of workers must be positive.")
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: list[Future] = []

    def dispatch(self, simulator: GBMPathSimulator, out: torch.Tensor, group_size: int) -> None:
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="gbm-group")
        self._futures = [
            self._executor.submit(simulator.simulate_group, _group_ids(start, stop, out.device), out)
            for start, stop in iter_groups(simulator.params.num_paths, group_size)
        ]

    def synchronize(self, device: torch.device) -> None:
        if self._executor is None:
            raise RuntimeError("Nothing has been dispatched.")
        try:
            for future in self._futures:
                future.result()
        finally:
            self._executor.shutdown(wait=True)
            self._executor = None
            self._futures = []
        synchronize_device(device)


class SerialBackend:
    """Runs every unit through the scalar ``simulate_path`` contract, one at a time."""

    name = "serial"

    def dispatch(self, simulator: GBMPathSimulator, out: torch.Tensor, group_size: int) -> None:
        for start, stop in iter_groups(simulator.params.num_paths, group_size):
            for path_id in range(start, stop):
                payoff = simulator.simulate_path(path_id)
                if payoff is not None:
                    out[path_id] = payoff

    def synchronize(self, device: torch.device) -> None:
        synchronize_device(device)


BACKEND_NAMES: tuple[str, ...] = ("vectorized", "threads", "serial")


def create_backend(name: str, *, max_workers: Optional[int] = None):
    if name == "vectorized":
        return VectorizedBackend()
    if name == "threads":
        return ThreadPoolBackend(max_workers=max_workers)
    if name == "serial":
        return SerialBackend()
    raise ValueError(f"Unknown backend {name!r}; expected one of {', '.join(BACKEND_NAMES)}.")
