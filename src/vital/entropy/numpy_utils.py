"""NumPy conversion helpers for series input.

These helpers aim to minimize unnecessary copies while enforcing a
contiguous float64 layout for the matching kernel. Arrays handed to the
kernel are marked read-only so no worker can mutate the shared series.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np
import polars as pl

from vital.entropy.exceptions import InvalidParameterError

SeriesLike = Union[Sequence[float], np.ndarray, pl.Series]


def to_numpy_float64(data: SeriesLike, *, allow_copy: bool = True) -> np.ndarray:
    """Convert a series to a read-only, C-contiguous 1D float64 array.

    Args:
        data: Python sequence, NumPy array or Polars Series.
        allow_copy: Passed to Polars when converting a Series.

    Returns:
        1D float64 array; an (N, 1) column is flattened. A copy is made
        only when the input dtype or layout requires it, or when the input
        array is writable.
    """
    if isinstance(data, pl.Series):
        try:
            arr = data.to_numpy(writable=False, allow_copy=allow_copy)
        except Exception:
            arr = data.to_numpy(writable=False, allow_copy=True)
    else:
        try:
            arr = np.asarray(data)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(
                "Series must be a flat sequence of numbers",
                parameter="series",
                value=f"<{type(data).__name__}>",
            ) from exc

    if arr.ndim > 2 or (arr.ndim == 2 and arr.shape[1] != 1):
        raise InvalidParameterError(
            "Series must be one-dimensional",
            parameter="series",
            value=f"shape {arr.shape}",
            valid_range="(N,) or (N, 1)",
        )

    if arr.dtype != np.float64:
        try:
            arr = arr.astype(np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(
                "Series must be numeric",
                parameter="series",
                value=f"dtype {arr.dtype}",
            ) from exc
    arr = np.ascontiguousarray(arr.reshape(-1))

    if arr.flags.writeable:
        # Never flip the flag on a caller-owned buffer
        arr = arr.copy()
        arr.flags.writeable = False
    return arr
