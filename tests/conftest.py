"""Pytest configuration and shared fixtures for vital-entropy tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from vital.entropy.config import reset_defaults


@pytest.fixture(autouse=True)
def _restore_defaults():
    """Undo configure_defaults() calls made by a test."""
    reset_defaults()
    yield
    reset_defaults()


@pytest.fixture
def periodic_series() -> list[float]:
    """Period-3 repeating series of length 9."""
    return [1.0, 2.0, 3.0, 1.0, 2.0, 3.0, 1.0, 2.0, 3.0]


@pytest.fixture
def random_series() -> np.ndarray:
    """Twenty independent uniform samples in [0, 1]."""
    rng = np.random.default_rng(42)
    return rng.uniform(0.0, 1.0, 20)


@pytest.fixture
def normal_series() -> np.ndarray:
    """Longer Gaussian series for parallel and agreement tests."""
    rng = np.random.default_rng(42)
    return rng.normal(0.0, 1.0, 300)


def brute_force_counts(series, m: int, r: float) -> tuple[int, int]:
    """Ordered-pair match counts straight from the definition.

    B over starts 0..N-m-1, A over starts 0..N-m-2, i != j, inclusive tolerance.
    """
    x = [float(v) for v in series]
    k = len(x) - m

    def matches(i: int, j: int, length: int) -> bool:
        return max(abs(x[i + t] - x[j + t]) for t in range(length)) <= r

    b = sum(1 for i in range(k) for j in range(k) if i != j and matches(i, j, m))
    a = sum(1 for i in range(k - 1) for j in range(k - 1) if i != j and matches(i, j, m + 1))
    return b, a


def write_vital_csv(path: Path, name: str, n_rows: int, seed: int = 0) -> Path:
    """Write a record file with header name,mbp,sbp,dbp and noisy pressure waves."""
    rng = np.random.default_rng(seed)
    t = np.arange(n_rows)
    sbp = 120 + 0.05 * t + 5 * np.sin(t / 7) + rng.normal(0, 2, n_rows)
    dbp = 80 + 0.02 * t + 3 * np.sin(t / 7) + rng.normal(0, 1.5, n_rows)
    mbp = (sbp + 2 * dbp) / 3
    lines = ["name,mbp,sbp,dbp"]
    for i in range(n_rows):
        lines.append(f"{name},{mbp[i]:.4f},{sbp[i]:.4f},{dbp[i]:.4f}")
    path.write_text("\n".join(lines) + "\n")
    return path
