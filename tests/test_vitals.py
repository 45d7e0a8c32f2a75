"""Tests for vital record loading and batch computation."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import polars as pl
import pytest

from conftest import write_vital_csv
from vital.entropy import vitals
from vital.entropy.config import SampEnConfig
from vital.entropy.exceptions import DataFormatError, InvalidParameterError, WorkerError
from vital.entropy.sampen import SampEnStatus, sample_entropy
from vital.entropy.vitals import (
    RESULT_COLUMNS,
    VitalEntropies,
    batch_vital_entropies,
    compute_vital_entropies,
    entropies_to_frame,
    read_vital_csv,
    read_vital_glob,
    write_entropies_csv,
)


@pytest.fixture
def vital_dir(tmp_path: Path) -> Path:
    """Three record files, one too short for m=2."""
    write_vital_csv(tmp_path / "case_b.csv", "case_b", 150, seed=2)
    write_vital_csv(tmp_path / "case_a.csv", "case_a", 200, seed=1)
    write_vital_csv(tmp_path / "case_c.csv", "case_c", 3, seed=3)
    return tmp_path


class TestReadVitalCsv:
    """Tests for read_vital_csv function."""

    def test_reads_columns_by_position(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.csv"
        path.write_text("name,mbp,sbp,dbp\nrec1,90,120,75\nrec1,91,121,76\n")
        record = read_vital_csv(path)
        assert record.name == "rec1"
        assert record.mbp.tolist() == [90.0, 91.0]
        assert record.sbp.tolist() == [120.0, 121.0]
        assert record.dbp.tolist() == [75.0, 76.0]

    def test_tolerates_spaces_after_commas(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.csv"
        path.write_text("name, mbp, sbp, dbp\nrec1, 90.5, 120.25, 75\n")
        record = read_vital_csv(path)
        assert record.mbp.tolist() == [90.5]
        assert record.sbp.tolist() == [120.25]

    def test_missing_columns_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.csv"
        path.write_text("name,mbp\nrec1,90\n")
        with pytest.raises(DataFormatError) as exc_info:
            read_vital_csv(path)
        assert exc_info.value.path == str(path)

    def test_non_numeric_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.csv"
        path.write_text("name,mbp,sbp,dbp\nrec1,90,abc,75\n")
        with pytest.raises(DataFormatError):
            read_vital_csv(path)

    def test_missing_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.csv"
        path.write_text("name,mbp,sbp,dbp\nrec1,90,,75\n")
        with pytest.raises(DataFormatError):
            read_vital_csv(path)

    def test_header_only_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.csv"
        path.write_text("name,mbp,sbp,dbp\n")
        with pytest.raises(DataFormatError):
            read_vital_csv(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DataFormatError):
            read_vital_csv(tmp_path / "absent.csv")


class TestReadVitalGlob:
    """Tests for read_vital_glob function."""

    def test_sorted_by_path(self, vital_dir: Path) -> None:
        records = read_vital_glob(str(vital_dir / "*.csv"))
        assert [r.name for r in records] == ["case_a", "case_b", "case_c"]

    def test_no_matches(self, tmp_path: Path) -> None:
        assert read_vital_glob(str(tmp_path / "*.csv")) == []


class TestComputeVitalEntropies:
    """Tests for per-record and batch computation."""

    def test_all_waves_finite(self, vital_dir: Path) -> None:
        record = read_vital_csv(vital_dir / "case_a.csv")
        result = compute_vital_entropies(record)
        for wave in (result.sbp, result.mbp, result.dbp):
            assert wave.status is SampEnStatus.FINITE
            assert wave.value > 0
            assert wave.m == 2
            assert wave.n_samples == 200

    def test_short_record_undefined(self, vital_dir: Path) -> None:
        """Records too short for the embedding are undefined, not errors."""
        record = read_vital_csv(vital_dir / "case_c.csv")
        result = compute_vital_entropies(record)
        assert result.sbp.status is SampEnStatus.UNDEFINED

    def test_config_m_applied(self, vital_dir: Path) -> None:
        record = read_vital_csv(vital_dir / "case_a.csv")
        result = compute_vital_entropies(record, SampEnConfig(m=1))
        assert result.dbp.m == 1

    def test_batch_preserves_order_and_matches_sequential(self, vital_dir: Path) -> None:
        records = read_vital_glob(str(vital_dir / "*.csv"))
        sequential = batch_vital_entropies(records, n_jobs=1)
        parallel = batch_vital_entropies(records, n_jobs=2)
        assert [r.name for r in parallel] == ["case_a", "case_b", "case_c"]
        assert [r.to_row()["sbp_sampen"] for r in parallel[:2]] == [
            r.to_row()["sbp_sampen"] for r in sequential[:2]
        ]

    def test_progress_called_per_record(self, vital_dir: Path) -> None:
        records = read_vital_glob(str(vital_dir / "*.csv"))
        seen: list[str] = []
        batch_vital_entropies(records, n_jobs=2, progress=lambda r: seen.append(r.name))
        assert sorted(seen) == ["case_a", "case_b", "case_c"]

    @pytest.mark.parametrize("n_jobs", [0, -1])
    def test_batch_rejects_non_positive_workers(self, vital_dir: Path, n_jobs: int) -> None:
        records = read_vital_glob(str(vital_dir / "*.csv"))
        with pytest.raises(InvalidParameterError) as exc_info:
            batch_vital_entropies(records, n_jobs=n_jobs)
        assert exc_info.value.parameter == "n_jobs"

    def test_batch_worker_failure_names_record(
        self, vital_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing record aborts the batch with its index and name."""
        original = vitals.compute_vital_entropies

        def failing_compute(record, config=None):
            if record.name == "case_b":
                raise RuntimeError("record failed")
            return original(record, config)

        monkeypatch.setattr(vitals, "ProcessPoolExecutor", ThreadPoolExecutor)
        monkeypatch.setattr(vitals, "compute_vital_entropies", failing_compute)
        records = read_vital_glob(str(vital_dir / "*.csv"))

        with pytest.raises(WorkerError) as exc_info:
            batch_vital_entropies(records, n_jobs=2)
        assert exc_info.value.worker == 1
        assert exc_info.value.context["record"] == "case_b"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestEntropyOutput:
    """Tests for tabulating and writing results."""

    def _results(self) -> list[VitalEntropies]:
        finite = sample_entropy(10, 6)
        return [
            VitalEntropies("rec1", sbp=finite, mbp=finite, dbp=sample_entropy(4, 0)),
            VitalEntropies("rec2", sbp=sample_entropy(0, 0), mbp=finite, dbp=finite),
        ]

    def test_frame_columns_and_markers(self) -> None:
        frame = entropies_to_frame(self._results())
        assert frame.columns == RESULT_COLUMNS
        assert frame["dbp_sampen"][0] == math.inf
        assert math.isnan(frame["sbp_sampen"][1])
        assert frame["mbp_sampen"][0] == pytest.approx(math.log(10 / 6))

    def test_empty_frame(self) -> None:
        frame = entropies_to_frame([])
        assert frame.columns == RESULT_COLUMNS
        assert frame.height == 0

    def test_write_csv(self, tmp_path: Path) -> None:
        path = write_entropies_csv(self._results(), tmp_path / "out.csv")
        df = pl.read_csv(path)
        assert df.columns == RESULT_COLUMNS
        assert df["name"].to_list() == ["rec1", "rec2"]
