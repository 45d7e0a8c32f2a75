"""Sample entropy (SampEn) for physiological time series.

This package provides:
- Coupled match counting at embedding lengths m and m+1, without self-matches
- Process-pool parallel counting over disjoint slices of template indices
- Explicit degenerate results (undefined vs. infinite entropy)
- Linear detrending and standard-deviation based tolerance
- Batch computation over per-record blood pressure CSV files
- Global parameter configuration

Example:
    >>> from vital.entropy import compute_sample_entropy, count_matches, sample_entropy
    >>>
    >>> # Counts, then reduction
    >>> counts = count_matches(series, m=2, r=0.2, n_jobs=4)
    >>> result = sample_entropy(counts.b, counts.a)
    >>>
    >>> # One call, tolerance = 0.2 * std
    >>> result = compute_sample_entropy(series, m=2, r_fraction=0.2)
    >>> if result.is_finite:
    ...     print(result.value)
"""

from vital.entropy.config import (
    SampEnConfig,
    configure_defaults,
    get_defaults,
    reset_defaults,
)
from vital.entropy.exceptions import (
    DataFormatError,
    InsufficientDataError,
    InvalidParameterError,
    SampEnError,
    WorkerError,
)
from vital.entropy.matching import (
    MatchCounts,
    build_templates,
    chebyshev_distance,
    count_matches,
    partition_rows,
)
from vital.entropy.sampen import (
    SampEnResult,
    SampEnStatus,
    compute_sample_entropy,
    sample_entropy,
)
from vital.entropy.stats import detrend, mean, standard_deviation, tolerance

__all__ = [
    # Matching
    "MatchCounts",
    "build_templates",
    "chebyshev_distance",
    "count_matches",
    "partition_rows",
    # Reduction
    "SampEnResult",
    "SampEnStatus",
    "sample_entropy",
    "compute_sample_entropy",
    # Preprocessing
    "mean",
    "standard_deviation",
    "detrend",
    "tolerance",
    # Configuration
    "SampEnConfig",
    "configure_defaults",
    "get_defaults",
    "reset_defaults",
    # Exceptions
    "SampEnError",
    "InvalidParameterError",
    "InsufficientDataError",
    "DataFormatError",
    "WorkerError",
]
