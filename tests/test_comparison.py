"""Tests for saved runs and cross-run comparison."""

import json
import math

import pytest

from filmscatter.comparison.runs import (
    RunStore,
    SavedRun,
    build_comparison_series,
    run_statistics,
    theory_match_percentage,
)
from filmscatter.errors import RunStoreError
from filmscatter.physics.highland import HighlandParams
from filmscatter.physics.scattering import AnalysisSummary, ScatteringResults


def summary(sample_id, distance, sigma_corrected):
    return AnalysisSummary(
        sample_id=sample_id,
        distance=distance,
        sigma_air=0.5,
        sigma_material=math.hypot(0.5, sigma_corrected),
        sigma_corrected=sigma_corrected,
        theta=sigma_corrected / distance,
        theoretical_sigma=0.03 * distance,
    )


def make_run(name, summaries, theta_rms=0.03, theoretical=0.03, timestamp=1000.0):
    results = ScatteringResults(
        summaries=summaries,
        theta_rms=theta_rms,
        theoretical_theta=theoretical,
    )
    return SavedRun.from_results(name, results, HighlandParams(), timestamp=timestamp)


class TestTheoryMatch:
    """Tests for theory_match_percentage."""

    def test_perfect_match(self):
        assert theory_match_percentage(0.03, 0.03) == pytest.approx(100.0)

    def test_ten_percent_off(self):
        assert theory_match_percentage(0.033, 0.03) == pytest.approx(90.0)
        assert theory_match_percentage(0.027, 0.03) == pytest.approx(90.0)

    def test_floored_at_zero(self):
        assert theory_match_percentage(0.09, 0.03) == 0

    def test_no_theory(self):
        assert theory_match_percentage(0.03, 0.0) == 0


class TestSavedRun:
    """Tests for SavedRun snapshots."""

    def test_from_results(self):
        run = make_run("Lead", [summary(1, 100.0, 3.0), summary(2, 200.0, 6.5)])

        assert run.material_name == "Lead"
        assert len(run.id) == 12
        assert run.timestamp == 1000.0
        assert run.max_sigma_corrected == 6.5
        assert isinstance(run.results, tuple)

    def test_ids_are_unique(self):
        runs = [make_run("Water", []) for _ in range(20)]

        assert len({r.id for r in runs}) == 20

    def test_empty_run(self):
        run = make_run("Air", [], theta_rms=0.0)

        assert run.max_sigma_corrected == 0
        assert run.theory_match_percentage == 0

    def test_dict_round_trip(self):
        run = make_run("Lead", [summary(1, 100.0, 3.0)])

        assert SavedRun.from_dict(json.loads(json.dumps(run.to_dict()))) == run

    def test_statistics(self):
        run = make_run("Lead", [summary(1, 100.0, 3.0)], theta_rms=0.033)

        stats = run_statistics(run)

        assert stats.run_id == run.id
        assert stats.material_name == "Lead"
        assert stats.max_sigma_corrected == 3.0
        assert stats.theory_match_percentage == pytest.approx(90.0)


class TestBuildComparisonSeries:
    """Tests for distance-aligned comparison tables."""

    def test_union_of_distances(self):
        """Missing distances show as NaN, no interpolation."""
        a = make_run("A", [summary(1, 100.0, 1.0), summary(2, 200.0, 2.0)])
        b = make_run("B", [summary(1, 200.0, 2.5), summary(2, 300.0, 3.5)])

        df = build_comparison_series([a, b])

        assert list(df.index) == [100.0, 200.0, 300.0]
        assert df.index.name == "distance"
        assert list(df.columns) == [a.id, b.id]
        assert df.loc[100.0, a.id] == 1.0
        assert math.isnan(df.loc[100.0, b.id])
        assert df.loc[200.0, b.id] == 2.5
        assert math.isnan(df.loc[300.0, a.id])

    def test_duplicate_distance_uses_first(self):
        run = make_run("A", [summary(1, 100.0, 1.0), summary(2, 100.0, 9.0)])

        df = build_comparison_series([run])

        assert len(df) == 1
        assert df.loc[100.0, run.id] == 1.0

    def test_no_runs(self):
        assert build_comparison_series([]).empty


class TestRunStore:
    """Tests for the run collection and its JSON persistence."""

    def test_newest_first(self):
        store = RunStore()
        first = make_run("First", [])
        second = make_run("Second", [])

        store.add(first)
        store.add(second)

        assert [r.id for r in store] == [second.id, first.id]
        assert len(store) == 2
        assert first.id in store

    def test_duplicate_id_rejected(self):
        store = RunStore()
        run = make_run("A", [])
        store.add(run)

        with pytest.raises(RunStoreError):
            store.add(run)

    def test_get_and_remove(self):
        run = make_run("A", [])
        store = RunStore([run])

        assert store.get(run.id) is run
        assert store.remove(run.id) is run
        assert len(store) == 0
        with pytest.raises(KeyError):
            store.get(run.id)

    def test_select(self):
        a, b, c = (make_run(n, []) for n in "ABC")
        store = RunStore()
        for run in (a, b, c):
            store.add(run)

        assert store.select([a.id, c.id]) == [c, a]

    def test_select_unknown(self):
        store = RunStore([make_run("A", [])])

        with pytest.raises(KeyError, match="nope"):
            store.select(["nope"])

    def test_json_round_trip(self, tmp_path):
        store = RunStore()
        store.add(make_run("A", [summary(1, 100.0, 1.0)]))
        store.add(make_run("B", [summary(1, 100.0, 2.0)]))
        path = tmp_path / "runs.json"

        store.save_json(path)
        loaded = RunStore.load_json(path)

        assert loaded.runs == store.runs

    def test_missing_file_is_empty(self, tmp_path):
        assert len(RunStore.load_json(tmp_path / "missing.json")) == 0

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "runs.json"
        path.write_text('{"runs": [{"id": "x"}]}')

        with pytest.raises(RunStoreError):
            RunStore.load_json(path)

    def test_not_json(self, tmp_path):
        path = tmp_path / "runs.json"
        path.write_text("not json")

        with pytest.raises(RunStoreError):
            RunStore.load_json(path)
