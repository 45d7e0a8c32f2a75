"""Batch sample entropy over per-record blood pressure CSV files.

Each record is one CSV file with a header row and four columns, read by
position: record name, mean (MBP), systolic (SBP) and diastolic (DBP)
blood pressure. Waves are linearly detrended and the tolerance is taken as
``r_fraction`` times the detrended wave's standard deviation.

Example:
    >>> from vital.entropy.vitals import read_vital_glob, batch_vital_entropies, write_entropies_csv
    >>>
    >>> records = read_vital_glob("data/vitaldb_csvs/*.csv")
    >>> results = batch_vital_entropies(records, n_jobs=8)
    >>> write_entropies_csv(results, "vitaldb_entropies.csv")
"""

from __future__ import annotations

import glob
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from numbers import Integral
from pathlib import Path
from typing import Callable, Sequence

import numpy as np
import polars as pl

from vital.entropy.config import SampEnConfig, get_defaults
from vital.entropy.exceptions import DataFormatError, InvalidParameterError, WorkerError
from vital.entropy.logging_config import get_logger, log_result
from vital.entropy.sampen import SampEnResult, compute_sample_entropy

logger = get_logger("vitals")

WAVES = ("sbp", "mbp", "dbp")
RESULT_COLUMNS = ["name", "sbp_sampen", "mbp_sampen", "dbp_sampen"]


@dataclass(frozen=True)
class VitalRecord:
    """Blood pressure waves of one record."""

    name: str
    sbp: np.ndarray
    mbp: np.ndarray
    dbp: np.ndarray


@dataclass(frozen=True)
class VitalEntropies:
    """Sample entropy of each wave of one record."""

    name: str
    sbp: SampEnResult
    mbp: SampEnResult
    dbp: SampEnResult

    def to_row(self) -> dict:
        return {
            "name": self.name,
            "sbp_sampen": self.sbp.as_float(),
            "mbp_sampen": self.mbp.as_float(),
            "dbp_sampen": self.dbp.as_float(),
        }


def read_vital_csv(path: str | Path) -> VitalRecord:
    """Read one record file.

    Args:
        path: CSV with header; columns are name, mbp, sbp, dbp by position.

    Returns:
        VitalRecord named after the first row's name column.

    Raises:
        DataFormatError: If the file is empty, has fewer than four columns,
            or holds missing or non-numeric pressure values.
    """
    path = Path(path)
    try:
        df = pl.read_csv(path, infer_schema=False)
    except (OSError, pl.exceptions.PolarsError) as exc:
        raise DataFormatError(f"Could not read vital file: {exc}", path=str(path)) from exc

    if df.width < 4:
        raise DataFormatError(
            "Expected columns name, mbp, sbp, dbp", path=str(path), context={"columns": df.width}
        )
    if df.height == 0:
        raise DataFormatError("Vital file has no rows", path=str(path))

    name_col, mbp_col, sbp_col, dbp_col = df.columns[:4]
    try:
        waves = df.select(
            pl.col(mbp_col).str.strip_chars().cast(pl.Float64, strict=True).alias("mbp"),
            pl.col(sbp_col).str.strip_chars().cast(pl.Float64, strict=True).alias("sbp"),
            pl.col(dbp_col).str.strip_chars().cast(pl.Float64, strict=True).alias("dbp"),
        )
    except pl.exceptions.PolarsError as exc:
        raise DataFormatError(f"Non-numeric pressure value: {exc}", path=str(path)) from exc

    null_counts = waves.null_count().row(0, named=True)
    if any(null_counts.values()):
        raise DataFormatError("Missing pressure values", path=str(path), context=null_counts)
    if not np.isfinite(waves.to_numpy()).all():
        raise DataFormatError("Non-finite pressure values", path=str(path))

    return VitalRecord(
        name=str(df[name_col][0]).strip(),
        sbp=waves["sbp"].to_numpy(),
        mbp=waves["mbp"].to_numpy(),
        dbp=waves["dbp"].to_numpy(),
    )


def read_vital_glob(pattern: str) -> list[VitalRecord]:
    """Read every file matching a glob pattern, in sorted path order."""
    paths = sorted(glob.glob(pattern))
    log_result(logger, "Reading vital files", n_files=len(paths), pattern=pattern)
    return [read_vital_csv(p) for p in paths]


def compute_vital_entropies(record: VitalRecord, config: SampEnConfig | None = None) -> VitalEntropies:
    """Sample entropy of the SBP, MBP and DBP waves of one record.

    Waves too short for the embedding yield UNDEFINED results.
    """
    config = config or get_defaults()
    results = {
        wave: compute_sample_entropy(
            getattr(record, wave),
            m=config.m,
            r_fraction=config.r_fraction,
            detrend=True,
            n_jobs=1,
            strict=False,
        )
        for wave in WAVES
    }
    return VitalEntropies(name=record.name, **results)


def batch_vital_entropies(
    records: Sequence[VitalRecord],
    *,
    config: SampEnConfig | None = None,
    n_jobs: int | None = None,
    progress: Callable[[VitalEntropies], None] | None = None,
) -> list[VitalEntropies]:
    """Compute entropies for many records, one record per task.

    Records are spread across worker processes; the match counting inside
    each task stays single-process.

    Args:
        records: Records to process.
        config: Parameters. None uses the active defaults.
        n_jobs: Worker processes. None uses the configured default.
        progress: Called once per finished record, in completion order.

    Returns:
        Results in the same order as ``records``.

    Raises:
        InvalidParameterError: If n_jobs is not a positive integer.
        WorkerError: If computing a record fails.
    """
    config = config or get_defaults()
    n_jobs = config.resolved_n_jobs() if n_jobs is None else n_jobs
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, Integral) or n_jobs < 1:
        raise InvalidParameterError(
            "Number of workers must be positive", parameter="n_jobs", value=n_jobs, valid_range=">= 1"
        )
    n_jobs = int(n_jobs)

    results: list[VitalEntropies | None] = [None] * len(records)

    if n_jobs == 1 or len(records) < 2:
        for idx, record in enumerate(records):
            results[idx] = compute_vital_entropies(record, config)
            if progress:
                progress(results[idx])
    else:
        with ProcessPoolExecutor(max_workers=min(n_jobs, len(records))) as executor:
            futures = {
                executor.submit(compute_vital_entropies, record, config): idx
                for idx, record in enumerate(records)
            }
            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception as exc:
                    for pending in futures:
                        pending.cancel()
                    raise WorkerError(
                        "Vital record worker failed",
                        worker=idx,
                        context={"record": records[idx].name, "error": type(exc).__name__},
                    ) from exc
                if progress:
                    progress(results[idx])

    log_result(logger, "Computed vital entropies", n_records=len(records))
    return results  # type: ignore[return-value]


def entropies_to_frame(results: Sequence[VitalEntropies]) -> pl.DataFrame:
    """Tabulate results; undefined entropies become NaN, infinite stay inf."""
    rows = [r.to_row() for r in results]
    return pl.DataFrame(
        {col: [row[col] for row in rows] for col in RESULT_COLUMNS},
        schema={"name": pl.Utf8, "sbp_sampen": pl.Float64, "mbp_sampen": pl.Float64, "dbp_sampen": pl.Float64},
    )


def write_entropies_csv(results: Sequence[VitalEntropies], path: str | Path) -> Path:
    """Write results as CSV with columns name, sbp_sampen, mbp_sampen, dbp_sampen."""
    path = Path(path)
    entropies_to_frame(results).write_csv(path)
    log_result(logger, "Wrote entropies", path=str(path), n_records=len(results))
    return path
