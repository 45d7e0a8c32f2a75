"""Template match counting for sample entropy.

Counts ordered pairs of distinct templates whose Chebyshev distance is
within tolerance, at embedding lengths m and m+1.

Index conventions for a series of length N:
    - B counts pairs (i, j), i != j, with 0 <= i, j <= N-m-1.
    - A counts pairs (i, j), i != j, with 0 <= i, j <= N-m-2.
    - Two templates match iff max_k |x[i+k] - x[j+k]| <= r (inclusive).

The (m+1) comparison only runs for pairs that already matched at length m,
so every pair counted in A is also counted in B. Unordered pairs are
visited once and counted twice.

Example:
    >>> from vital.entropy.matching import count_matches
    >>> counts = count_matches([1, 2, 3, 1, 2, 3, 1, 2, 3], m=2, r=0.5)
    >>> counts.b, counts.a
    (10, 6)
"""

from __future__ import annotations

import math
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Iterable

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from vital.entropy.config import PartitionStrategy, get_defaults
from vital.entropy.exceptions import InvalidParameterError, WorkerError
from vital.entropy.logging_config import get_logger, log_function_entry, log_result
from vital.entropy.numpy_utils import SeriesLike, to_numpy_float64

logger = get_logger("matching")


@dataclass(frozen=True)
class MatchCounts:
    """Ordered-pair match counts at lengths m (``b``) and m+1 (``a``)."""

    b: int = 0
    a: int = 0

    def __add__(self, other: MatchCounts) -> MatchCounts:
        if not isinstance(other, MatchCounts):
            return NotImplemented
        return MatchCounts(self.b + other.b, self.a + other.a)

    @classmethod
    def zero(cls) -> MatchCounts:
        return cls(0, 0)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"b": self.b, "a": self.a}


def build_templates(series: SeriesLike, length: int) -> np.ndarray:
    """All templates of a given length as rows of a read-only view.

    Args:
        series: Input series of length N.
        length: Template length L (positive).

    Returns:
        Array of shape (N - L + 1, L); shape (0, L) when N < L.
    """
    if not isinstance(length, Integral) or isinstance(length, bool) or length < 1:
        raise InvalidParameterError(
            "Template length must be a positive integer",
            parameter="length",
            value=length,
            valid_range=">= 1",
        )
    x = to_numpy_float64(series)
    if len(x) < length:
        return np.empty((0, int(length)), dtype=np.float64)
    return sliding_window_view(x, int(length))


def chebyshev_distance(u: SeriesLike, v: SeriesLike) -> float:
    """Maximum absolute element-wise difference of two equal-length sequences."""
    a = to_numpy_float64(u)
    b = to_numpy_float64(v)
    if a.shape != b.shape:
        raise InvalidParameterError(
            "Templates must have equal length",
            parameter="v",
            value=len(b),
            valid_range=f"== {len(a)}",
        )
    if len(a) == 0:
        return 0.0
    return float(np.max(np.abs(a - b)))


def partition_rows(
    n_rows: int,
    n_workers: int,
    strategy: PartitionStrategy = "striped",
) -> list[range]:
    """Split outer template indices 0..n_rows-1 into worker slices.

    Row i pairs with every j in (i, n_rows], so rows carry a decreasing
    number of comparisons. ``"striped"`` deals rows round-robin;
    ``"contiguous"`` cuts blocks holding roughly equal pair counts.
    The returned ranges are disjoint, cover every row exactly once, and
    are never empty.

    Args:
        n_rows: Number of outer indices that have at least one partner.
        n_workers: Requested number of slices.
        strategy: ``"striped"`` or ``"contiguous"``.

    Returns:
        At most ``n_workers`` non-empty ranges.
    """
    if n_workers < 1:
        raise InvalidParameterError(
            "Number of workers must be positive", parameter="n_jobs", value=n_workers, valid_range=">= 1"
        )
    if n_rows <= 0:
        return []

    n_workers = min(n_workers, n_rows)

    if strategy == "striped":
        return [range(w, n_rows, n_workers) for w in range(n_workers)]

    if strategy == "contiguous":
        # Row i of n_rows has n_rows - i partners
        pairs_per_row = np.arange(n_rows, 0, -1, dtype=np.int64)
        cumulative = np.cumsum(pairs_per_row)
        targets = cumulative[-1] * np.arange(1, n_workers) / n_workers
        cuts = np.searchsorted(cumulative, targets, side="left") + 1
        bounds = [0, *(int(c) for c in cuts), n_rows]
        return [range(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]

    raise InvalidParameterError(
        f"Unknown partition strategy: {strategy}",
        parameter="partition",
        value=strategy,
        valid_range="striped, contiguous",
    )


def _count_rows(x: np.ndarray, m: int, r: float, rows: Iterable[int]) -> MatchCounts:
    """Count matches for the outer indices in ``rows`` (worker function).

    Each row i is compared against every j > i in one vectorised pass;
    the accumulator is local to this call.
    """
    n_templates = len(x) - m
    b = 0
    a = 0
    for i in rows:
        lo = i + 1
        if lo >= n_templates:
            continue
        dist = np.abs(x[lo:n_templates] - x[i])
        for k in range(1, m):
            np.maximum(dist, np.abs(x[lo + k : n_templates + k] - x[i + k]), out=dist)

        hits = np.flatnonzero(dist <= r)
        if hits.size == 0:
            continue
        b += int(hits.size)

        # Extend only the pairs that matched at length m
        j = hits + lo
        j = j[j < n_templates - 1]
        if j.size:
            a += int(np.count_nonzero(np.abs(x[j + m] - x[i + m]) <= r))

    return MatchCounts(2 * b, 2 * a)


def _validate_inputs(series: SeriesLike, m: int, r: float) -> np.ndarray:
    if not isinstance(m, Integral) or isinstance(m, bool) or m < 1:
        raise InvalidParameterError(
            "Embedding dimension must be a positive integer",
            parameter="m",
            value=m,
            valid_range=">= 1",
        )

    x = to_numpy_float64(series)
    if len(x) == 0:
        raise InvalidParameterError("Series is empty", parameter="series", value=0, valid_range="len >= 1")
    if not np.all(np.isfinite(x)):
        bad = int(np.count_nonzero(~np.isfinite(x)))
        raise InvalidParameterError(
            "Series contains NaN or infinite samples",
            parameter="series",
            value=f"{bad} non-finite",
        )

    if not isinstance(r, Real) or isinstance(r, bool) or not math.isfinite(r) or r < 0:
        raise InvalidParameterError(
            "Tolerance must be a non-negative finite number",
            parameter="r",
            value=r,
            valid_range="[0, inf)",
        )
    return x


def count_matches(
    series: SeriesLike,
    m: int,
    r: float,
    *,
    n_jobs: int | None = None,
    partition: PartitionStrategy | None = None,
) -> MatchCounts:
    """Count template matches at lengths m and m+1.

    Args:
        series: Non-empty series of finite samples.
        m: Embedding dimension (positive integer).
        r: Tolerance; templates match when their Chebyshev distance is <= r.
        n_jobs: Worker processes. None uses the configured default.
        partition: Row partition strategy. None uses the configured default.

    Returns:
        MatchCounts with ordered-pair counts. ``MatchCounts(0, 0)`` when
        the series has fewer than two length-m templates (N <= m + 1).

    Raises:
        InvalidParameterError: If m, r, n_jobs or the series are invalid.
        WorkerError: If a worker process fails.
    """
    config = get_defaults()
    n_jobs = config.resolved_n_jobs() if n_jobs is None else n_jobs
    partition = partition or config.partition

    log_function_entry(logger, "count_matches", series=series, m=m, r=r, n_jobs=n_jobs)

    x = _validate_inputs(series, m, r)
    m = int(m)
    r = float(r)
    n = len(x)

    if n <= m + 1:
        log_result(logger, "Too few templates, no comparisons made", n=n, m=m)
        return MatchCounts.zero()

    # Outer indices 0..N-m-2 each have at least one partner j > i
    n_rows = n - m - 1
    slices = partition_rows(n_rows, n_jobs, partition)

    if len(slices) == 1 or n_rows < config.parallel_threshold:
        total = MatchCounts.zero()
        for rows in slices:
            total = total + _count_rows(x, m, r, rows)
    else:
        total = _count_parallel(x, m, r, slices)

    log_result(logger, "Counted matches", n=n, m=m, r=r, b=total.b, a=total.a, workers=len(slices))
    return total


def _count_parallel(x: np.ndarray, m: int, r: float, slices: list[range]) -> MatchCounts:
    """Run one task per slice on a process pool and sum the partial counts."""
    partials: list[MatchCounts] = []
    with ProcessPoolExecutor(max_workers=len(slices)) as executor:
        futures = {
            executor.submit(_count_rows, x, m, r, rows): worker
            for worker, rows in enumerate(slices)
        }
        for future in as_completed(futures):
            try:
                partials.append(future.result())
            except Exception as exc:
                for pending in futures:
                    pending.cancel()
                raise WorkerError(
                    "Match counting worker failed",
                    worker=futures[future],
                    context={"error": type(exc).__name__},
                ) from exc

    total = MatchCounts.zero()
    for part in partials:
        total = total + part
    return total
