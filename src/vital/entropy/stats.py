"""Series preprocessing: moments, linear detrending and tolerance derivation."""

from __future__ import annotations

import numpy as np

from vital.entropy.exceptions import InvalidParameterError
from vital.entropy.numpy_utils import SeriesLike, to_numpy_float64


def mean(data: SeriesLike) -> float:
    """Arithmetic mean of a non-empty series."""
    x = to_numpy_float64(data)
    if len(x) == 0:
        raise InvalidParameterError("Cannot take the mean of an empty series", parameter="series", value=0)
    return float(x.mean())


def standard_deviation(data: SeriesLike) -> float:
    """Population standard deviation (ddof=0) of a non-empty series."""
    x = to_numpy_float64(data)
    if len(x) == 0:
        raise InvalidParameterError(
            "Cannot take the standard deviation of an empty series", parameter="series", value=0
        )
    return float(x.std(ddof=0))


def detrend(data: SeriesLike) -> np.ndarray:
    """Remove an ordinary least squares linear trend from a series.

    The regression is fitted against positions 1..N and the residuals
    are returned. Detrending before SampEn follows Pincus & Goldberger (1994),
    "Physiological time-series analysis: what does regularity quantify?".

    Args:
        data: Series to detrend.

    Returns:
        Residual series as a new float64 array. A single-sample series
        yields ``[0.0]``; an empty series yields an empty array.
    """
    y = to_numpy_float64(data)
    n = len(y)
    if n < 2:
        return y - y.mean() if n else y.copy()

    t = np.arange(1, n + 1, dtype=np.float64)
    t_bar = (n + 1) / 2.0
    y_bar = y.mean()
    dt = t - t_bar
    beta_hat = float(np.dot(dt, y - y_bar) / np.dot(dt, dt))
    alpha_hat = y_bar - beta_hat * t_bar
    return y - alpha_hat - beta_hat * t


def tolerance(data: SeriesLike, r_fraction: float = 0.2) -> float:
    """Tolerance r as a fraction of the population standard deviation.

    Raises:
        InvalidParameterError: If ``r_fraction`` is not a positive finite number.
    """
    if not np.isfinite(r_fraction) or r_fraction <= 0:
        raise InvalidParameterError(
            "r_fraction must be a positive finite number",
            parameter="r_fraction",
            value=r_fraction,
            valid_range="(0, inf)",
        )
    return r_fraction * standard_deviation(data)
