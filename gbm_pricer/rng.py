"""Counter-based Philox4x32-10 streams evaluated as PyTorch tensor kernels.

Every path draws from its own Philox subsequence: the 64-bit seed is the key
and the path id occupies the upper two counter words, the lower two words count
blocks of four variates along the path. Streams therefore need no shared state
and any path can be regenerated on its own, on any device, in any grouping.

Words are carried in ``torch.int64`` tensors holding unsigned 32-bit values;
the 32x32 multiply is split into 16-bit limbs so nothing overflows.
"""
from __future__ import annotations

import math

import torch

MASK32 = 0xFFFFFFFF
PHILOX_M0 = 0xD2511F53
PHILOX_M1 = 0xCD9E8D57
PHILOX_W0 = 0x9E3779B9
PHILOX_W1 = 0xBB67AE85
DEFAULT_ROUNDS = 10
VARIATES_PER_BLOCK = 4

_TWO_POW_MINUS_32 = 2.0**-32


def split_seed(seed: int) -> tuple[int, int]:
    """Split a 64-bit seed into the (low, high) Philox key words."""
    return seed & MASK32, (seed >> 32) & MASK32


def _mulhilo(multiplier: int, word: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
    low_product = word * (multiplier & 0xFFFF)
    high_product = word * (multiplier >> 16)
    partial = (low_product & MASK32) + ((high_product & 0xFFFF) << 16)
    lo = partial & MASK32
    hi = ((low_product >> 32) + (high_product >> 16) + (partial >> 32)) & MASK32
    return hi, lo


def philox4x32(
    counter: torch.Tensor,
    key: tuple[int, int],
    *,
    rounds: int = DEFAULT_ROUNDS,
) -> torch.Tensor:
    """Apply the Philox4x32 bijection to a batch of 128-bit counters.

    ``counter`` has shape ``(..., 4)`` with each entry in ``[0, 2**32)``; the
    result has the same shape and layout.
    """
    if counter.shape[-1] != 4:
        raise ValueError("Philox counters must have a trailing dimension of 4.")
    if rounds <= 0:
        raise ValueError("Number of Philox rounds must be positive.")

    c0, c1, c2, c3 = counter.to(torch.int64).unbind(-1)
    k0, k1 = key[0] & MASK32, key[1] & MASK32
    for round_index in range(rounds):
        if round_index:
            k0 = (k0 + PHILOX_W0) & MASK32
            k1 = (k1 + PHILOX_W1) & MASK32
        hi0, lo0 = _mulhilo(PHILOX_M0, c0)
        hi1, lo1 = _mulhilo(PHILOX_M1, c2)
        c0, c1, c2, c3 = hi1 ^ c1 ^ k0, lo1, hi0 ^ c3 ^ k1, lo0
    return torch.stack((c0, c1, c2, c3), dim=-1)


def uniforms_from_words(words: torch.Tensor, *, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """Map 32-bit words to the open interval (0, 1)."""
    return (words.to(dtype) + 0.5) * _TWO_POW_MINUS_32


def box_muller(u1: torch.Tensor, u2: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
    radius = torch.sqrt(-2.0 * torch.log(u1))
    theta = (2.0 * math.pi) * u2
    return radius * torch.cos(theta), radius * torch.sin(theta)


def block_counters(path_ids: torch.Tensor, block: int) -> torch.Tensor:
    """Counters for one block of every path in ``path_ids``."""
    path_ids = path_ids.to(torch.int64)
    return torch.stack(
        (
            torch.full_like(path_ids, block & MASK32),
            torch.full_like(path_ids, (block >> 32) & MASK32),
            path_ids & MASK32,
            (path_ids >> 32) & MASK32,
        ),
        dim=-1,
    )


def standard_normals(
    seed: int,
    path_ids: torch.Tensor,
    block: int,
    *,
    dtype: torch.dtype = torch.float64,
) -> torch.Tensor:
    """Return ``(len(path_ids), 4)`` standard normal variates for one counter block.

    Column ``j`` of block ``b`` is the variate consumed at step ``4 * b + j``.
    """
    if block < 0:
        raise ValueError("Block index must be non-negative.")
    words = philox4x32(block_counters(path_ids, block), split_seed(seed))
    uniforms = uniforms_from_words(words, dtype=dtype)
    z0, z1 = box_muller(uniforms[..., 0], uniforms[..., 1])
    z2, z3 = box_muller(uniforms[..., 2], uniforms[..., 3])
    return torch.stack((z0, z1, z2, z3), dim=-1)
