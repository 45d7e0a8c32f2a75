"""Sample entropy reduction and the series-level pipeline.

``sample_entropy`` turns a pair of match counts into a ``SampEnResult``;
``compute_sample_entropy`` runs validation, optional detrending,
tolerance derivation, match counting and reduction for one series.

Degenerate outcomes are statuses, not exceptions:

    ==========  ==========  ==================================
    b           a           status / value
    ==========  ==========  ==================================
    0           0           UNDEFINED / None   (0/0)
    > 0         0           INFINITE / inf
    > 0         > 0         FINITE / -ln(a / b)
    ==========  ==========  ==================================

Example:
    >>> from vital.entropy import compute_sample_entropy
    >>> result = compute_sample_entropy([1, 2, 3, 1, 2, 3, 1, 2, 3], m=2, r=0.5)
    >>> result.status.value, round(result.value, 4)
    ('finite', 0.5108)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Integral

from vital.entropy.config import get_defaults
from vital.entropy.exceptions import InsufficientDataError, InvalidParameterError
from vital.entropy.logging_config import get_logger, log_function_entry, log_result, log_warning
from vital.entropy.matching import MatchCounts, count_matches
from vital.entropy.numpy_utils import SeriesLike, to_numpy_float64
from vital.entropy.stats import detrend as detrend_series
from vital.entropy.stats import tolerance

logger = get_logger("sampen")


class SampEnStatus(str, Enum):
    """Outcome class of a sample entropy evaluation."""

    FINITE = "finite"
    INFINITE = "infinite"
    UNDEFINED = "undefined"


@dataclass(frozen=True)
class SampEnResult:
    """Sample entropy of one series.

    Attributes:
        status: FINITE, INFINITE (b > 0, a == 0) or UNDEFINED (b == 0).
        value: -ln(a / b) when FINITE, ``math.inf`` when INFINITE,
            None when UNDEFINED.
        b: Ordered-pair matches at length m.
        a: Ordered-pair matches at length m + 1.
        m: Embedding dimension, when known.
        r: Tolerance used, when known.
        n_samples: Series length, when known.
    """

    status: SampEnStatus
    value: float | None
    b: int
    a: int
    m: int | None = None
    r: float | None = None
    n_samples: int | None = None

    @property
    def is_finite(self) -> bool:
        return self.status is SampEnStatus.FINITE

    @property
    def is_defined(self) -> bool:
        """True unless no length-m matches exist."""
        return self.status is not SampEnStatus.UNDEFINED

    def as_float(self) -> float:
        """Value for tabular export; NaN stands in for UNDEFINED."""
        return math.nan if self.value is None else self.value

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "value": self.value,
            "b": self.b,
            "a": self.a,
            "m": self.m,
            "r": self.r,
            "n_samples": self.n_samples,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SampEnResult:
        """Create from dictionary."""
        return cls(**{**data, "status": SampEnStatus(data["status"])})


def sample_entropy(
    b: int,
    a: int,
    *,
    m: int | None = None,
    r: float | None = None,
    n_samples: int | None = None,
) -> SampEnResult:
    """Reduce match counts to a sample entropy result.

    Args:
        b: Ordered-pair matches at length m.
        a: Ordered-pair matches at length m + 1.
        m: Optional embedding dimension, recorded on the result.
        r: Optional tolerance, recorded on the result.
        n_samples: Optional series length, recorded on the result.

    Returns:
        SampEnResult; see the module docstring for degenerate cases.

    Raises:
        InvalidParameterError: If a count is negative or a > b.
    """
    if b < 0 or a < 0:
        raise InvalidParameterError(
            "Match counts must be non-negative",
            parameter="b" if b < 0 else "a",
            value=b if b < 0 else a,
            valid_range=">= 0",
        )
    if a > b:
        raise InvalidParameterError(
            "Extended matches cannot exceed base matches",
            parameter="a",
            value=a,
            valid_range=f"<= {b}",
        )

    meta = {"b": int(b), "a": int(a), "m": m, "r": r, "n_samples": n_samples}
    if b == 0:
        return SampEnResult(status=SampEnStatus.UNDEFINED, value=None, **meta)
    if a == 0:
        return SampEnResult(status=SampEnStatus.INFINITE, value=math.inf, **meta)
    # log of the count ratio stays exact for integers beyond float range
    value = math.log(b) - math.log(a)
    return SampEnResult(status=SampEnStatus.FINITE, value=value, **meta)


def compute_sample_entropy(
    series: SeriesLike,
    m: int | None = None,
    r: float | None = None,
    *,
    r_fraction: float | None = None,
    detrend: bool | None = None,
    n_jobs: int | None = None,
    strict: bool = True,
) -> SampEnResult:
    """Compute sample entropy for a single series.

    Args:
        series: Non-empty series of finite samples.
        m: Embedding dimension. None uses the configured default.
        r: Absolute tolerance. When None, ``r_fraction`` times the
            population standard deviation of the (detrended) series.
        r_fraction: Fraction of the standard deviation. None uses the default.
        detrend: Remove a linear trend first. None uses the default.
        n_jobs: Worker processes for match counting.
        strict: Raise on series too short for the embedding instead of
            returning an UNDEFINED result.

    Returns:
        SampEnResult carrying counts and parameters.

    Raises:
        InvalidParameterError: If parameters or samples are invalid.
        InsufficientDataError: If ``strict`` and m + 1 >= len(series).
    """
    config = get_defaults()
    m = config.m if m is None else m
    r_fraction = config.r_fraction if r_fraction is None else r_fraction
    detrend = config.detrend if detrend is None else detrend

    log_function_entry(
        logger, "compute_sample_entropy", series=series, m=m, r=r, r_fraction=r_fraction, detrend=detrend
    )

    x = to_numpy_float64(series)
    n = len(x)

    if n == 0:
        raise InvalidParameterError("Series is empty", parameter="series", value=0, valid_range="len >= 1")

    if isinstance(m, Integral) and not isinstance(m, bool) and m >= 1 and m + 1 >= n:
        m = int(m)
        if strict:
            raise InsufficientDataError(
                f"Series of length {n} is too short for embedding dimension {m}",
                required=m + 2,
                actual=n,
                context={"m": m},
            )
        log_warning(logger, "Series too short, sample entropy undefined", n=n, m=m)
        return sample_entropy(0, 0, m=m, r=r, n_samples=n)

    if detrend:
        x = detrend_series(x)
    if r is None:
        r = tolerance(x, r_fraction)

    counts: MatchCounts = count_matches(x, m, r, n_jobs=n_jobs)
    result = sample_entropy(counts.b, counts.a, m=m, r=r, n_samples=n)

    log_result(logger, "Sample entropy", status=result.status.value, value=result.value, b=counts.b, a=counts.a)
    return result
