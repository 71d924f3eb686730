"""Seeded random stream.

Every draw is a pure function of an integer cursor and returns the advanced
cursor with the value.  Callers thread the cursor explicitly so a whole turn
can be replayed from the seed stored on ``GameState``.
"""

from __future__ import annotations

import logging
import math

import numpy as np

logger = logging.getLogger(__name__)

_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MODULUS = 2**32

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def ensure_seed(value: int | float | None) -> int:
    """Normalise *value* to a non-zero 32-bit cursor."""
    if value is None:
        return 1
    return max(1, int(value) % _MODULUS)


def seed_from_string(text: str) -> int:
    """32-bit FNV-1a hash of *text*, used to derive independent run seeds."""
    h = _FNV_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) % _MODULUS
    return ensure_seed(h)


def uniform(seed: int) -> tuple[float, int]:
    """Return ``(value in [0, 1), next_seed)``."""
    next_seed = (seed * _MULTIPLIER + _INCREMENT) % _MODULUS
    return next_seed / _MODULUS, next_seed


def normal(seed: int, mean: float = 0.0, std: float = 1.0) -> tuple[float, int]:
    """Box-Muller normal draw; consumes two (or more) uniforms.

    A first uniform of exactly zero is re-rolled before the logarithm.
    """
    u1, seed = uniform(seed)
    while u1 == 0.0:
        u1, seed = uniform(seed)
    u2, seed = uniform(seed)
    z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return mean + std * z, seed


def pick_index(seed: int, size: int) -> tuple[int, int]:
    """Uniform index into a sequence of *size* items."""
    value, seed = uniform(seed)
    return min(size - 1, int(value * size)), seed


def correlation_matrix(matrix: dict[str, dict[str, float]], ids: list[str]) -> np.ndarray:
    """Dense correlation matrix for *ids*; missing pairs are 0, the diagonal is 1.

    A pair may be authored under either ordering.
    """
    n = len(ids)
    out = np.eye(n)
    for i, a in enumerate(ids):
        for j, b in enumerate(ids):
            if i == j:
                continue
            rho = matrix.get(a, {}).get(b)
            if rho is None:
                rho = matrix.get(b, {}).get(a, 0.0)
            out[i, j] = rho
    return out


def cholesky_lower(corr: np.ndarray) -> np.ndarray:
    """Lower Cholesky factor of *corr*.

    A matrix that is not positive definite falls back to the identity
    (uncorrelated shocks) with a warning.
    """
    try:
        return np.linalg.cholesky(corr)
    except np.linalg.LinAlgError:
        logger.warning("Correlation matrix is not positive definite; using uncorrelated shocks.")
        return np.eye(corr.shape[0])


def correlated_normals(size: int, lower: np.ndarray, seed: int) -> tuple[list[float], int]:
    """Draw *size* independent standard normals and couple them through *lower*."""
    independent = []
    for _ in range(size):
        z, seed = normal(seed)
        independent.append(z)
    if not size:
        return [], seed
    coupled = lower @ np.asarray(independent)
    return [float(v) for v in coupled], seed
