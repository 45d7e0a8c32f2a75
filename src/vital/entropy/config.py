"""Default parameters for sample entropy computation.

Provides a Pydantic settings model plus module-level active defaults that
callers can override once (e.g. from the CLI) instead of threading every
parameter through each call.

Example:
    >>> from vital.entropy.config import configure_defaults, get_defaults
    >>>
    >>> configure_defaults(m=3, n_jobs=4)
    >>> get_defaults().m
    3
"""

from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vital.entropy.exceptions import InvalidParameterError

# Default to all available cores
DEFAULT_N_JOBS = os.cpu_count() or 1

PartitionStrategy = Literal["striped", "contiguous"]


class SampEnConfig(BaseModel):
    """Parameters shared by the kernel, the series pipeline and the batch runner.

    Attributes:
        m: Embedding dimension (template length).
        r_fraction: Tolerance as a fraction of the series standard deviation.
        detrend: Remove a least-squares linear trend before deriving r.
        n_jobs: Worker processes for match counting. None = all cores.
        partition: How outer template indices are split across workers.
        parallel_threshold: Below this many rows the kernel runs in-process.
    """

    model_config = ConfigDict(frozen=True)

    m: int = Field(default=2, ge=1)
    r_fraction: float = Field(default=0.2, gt=0)
    detrend: bool = False
    n_jobs: int | None = None
    partition: PartitionStrategy = "striped"
    parallel_threshold: int = Field(default=2048, ge=1)

    @field_validator("n_jobs")
    @classmethod
    def validate_n_jobs(cls, v: int | None) -> int | None:
        """Validate worker count is positive when given."""
        if v is not None and v < 1:
            raise ValueError("n_jobs must be >= 1 or None")
        return v

    @field_validator("r_fraction")
    @classmethod
    def validate_r_fraction(cls, v: float) -> float:
        """Reject NaN and infinite fractions."""
        if v != v or v == float("inf"):
            raise ValueError("r_fraction must be finite")
        return v

    def resolved_n_jobs(self) -> int:
        """Worker count with None resolved to the machine's core count."""
        return self.n_jobs if self.n_jobs is not None else DEFAULT_N_JOBS


_ORIGINAL_DEFAULTS = SampEnConfig()
_active_defaults = _ORIGINAL_DEFAULTS


def get_defaults() -> SampEnConfig:
    """Return the active default configuration."""
    return _active_defaults


def configure_defaults(**overrides: Any) -> SampEnConfig:
    """Override active defaults.

    Args:
        **overrides: Any ``SampEnConfig`` field.

    Returns:
        The new active configuration.

    Raises:
        InvalidParameterError: If a field is unknown or out of range.
    """
    global _active_defaults

    unknown = set(overrides) - set(SampEnConfig.model_fields)
    if unknown:
        name = sorted(unknown)[0]
        raise InvalidParameterError(
            f"Unknown configuration field: {name}",
            parameter=name,
            value=overrides[name],
            valid_range=", ".join(SampEnConfig.model_fields),
        )

    try:
        _active_defaults = SampEnConfig.model_validate(
            {**_active_defaults.model_dump(), **overrides}
        )
    except ValidationError as exc:
        first = exc.errors()[0]
        name = str(first["loc"][0]) if first["loc"] else "config"
        raise InvalidParameterError(
            f"Invalid configuration: {first['msg']}",
            parameter=name,
            value=overrides.get(name),
        ) from exc
    return _active_defaults


def reset_defaults() -> SampEnConfig:
    """Restore the built-in defaults."""
    global _active_defaults
    _active_defaults = _ORIGINAL_DEFAULTS
    return _active_defaults
