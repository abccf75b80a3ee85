"""Experiment harness helpers and CSV export."""

from __future__ import annotations

import csv

import pytest

from cafeteria.errors import ConfigError
from cafeteria.metrics import SimulationStatistics
from experiments.export import CSV_HEADER, stats_from_summary, summary_row, write_summary_csv
from experiments.run_experiments import aggregate_queue_series, avg_nested, main, mean_ci, run_replications
from experiments.scenarios import SCENARIOS
from conftest import make_cfg


class TestMeanCI:

    def test_empty_and_single(self):
        assert mean_ci([], 0.95) == (0.0, 0.0)
        assert mean_ci([4.0], 0.95) == (4.0, 0.0)

    def test_identical_values_have_no_spread(self):
        assert mean_ci([2.0, 2.0, 2.0], 0.95) == (2.0, 0.0)

    def test_student_t_half_width(self):
        mu, half = mean_ci([1.0, 2.0, 3.0], 0.95)
        assert mu == 2.0
        # t(0.975, 2) = 4.3027, s = 1, n = 3
        assert half == pytest.approx(4.3027 / 3 ** 0.5, rel=1e-3)

    def test_wider_at_higher_confidence(self):
        values = [3.0, 5.0, 4.0, 6.0]
        assert mean_ci(values, 0.99)[1] > mean_ci(values, 0.90)[1]


class TestAggregation:

    def test_avg_nested(self):
        out = avg_nested([{"u": {"grill": 10.0}}, {"u": {"grill": 30.0, "vegan": 4.0}}], "u")
        assert out == {"grill": 20.0, "vegan": 2.0}

    def test_queue_series_uses_last_point_at_or_before(self):
        r1 = {"time_series": [{"time_minutes": 0.0, "queue_total": 1}, {"time_minutes": 7.0, "queue_total": 5}]}
        r2 = {"time_series": [{"time_minutes": 2.0, "queue_total": 3}]}
        pts = aggregate_queue_series([r1, r2], horizon_minutes=10.0, interval_minutes=5.0)
        assert [p["time_minutes"] for p in pts] == [0.0, 5.0, 10.0]
        assert [p["queue_total"] for p in pts] == [0.5, 2.0, 4.0]

    def test_queue_series_empty(self):
        assert aggregate_queue_series([], 10.0) == []


class TestExport:

    def _stats(self):
        return SimulationStatistics(customers_served=12, customers_rejected=1, throughput=24.1234,
                                    average_wait=95.5556, peak_queue_length=4, current_time=1800.0)

    def test_row_layout(self):
        assert summary_row(self._stats()) == [12, 24.123, 95.556, 4, 1800.0]

    def test_csv_file(self, tmp_path):
        path = write_summary_csv(self._stats(), str(tmp_path / "out" / "run.csv"))
        with open(path, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == CSV_HEADER == ["Customers", "Throughput", "AvgWait", "PeakQueue", "Time"]
        assert rows[1][0] == "12"
        assert len(rows) == 2

    def test_stats_from_summary_ignores_extra_keys(self):
        res = self._stats().as_dict()
        res["arrivals"] = 13
        assert stats_from_summary(res) == self._stats()


class TestHarness:

    def test_replications_use_consecutive_seeds(self):
        cfg = make_cfg(sim={"seed": 10, "opening_hours": 0.25})
        results = run_replications(cfg, 2)
        assert len(results) == 2
        assert cfg["sim"]["seed"] == 10
        assert results[0]["arrivals"] != results[1]["arrivals"] or \
            results[0]["average_wait"] != results[1]["average_wait"]

    def test_scenario_names_unique(self):
        names = [sc["name"] for sc in SCENARIOS]
        assert len(names) == len(set(names))

    def test_main_writes_csvs(self, tmp_path, capsys):
        cfg_path = tmp_path / "cfg.yaml"
        cfg_path.write_text(
            "sim:\n  opening_hours: 0.25\n"
            f"experiments:\n  replications: 2\n  output_dir: {tmp_path / 'out'}\n"
        )
        main(["--config", str(cfg_path), "--scenario", "baseline", "--no-plots"])
        assert (tmp_path / "out" / "baseline_rep1.csv").exists()
        assert (tmp_path / "out" / "baseline_rep2.csv").exists()
        assert "Scenario: baseline" in capsys.readouterr().out

    def test_main_unknown_scenario(self, tmp_path):
        with pytest.raises(ConfigError):
            main(["--scenario", "nope", "--no-plots"])
