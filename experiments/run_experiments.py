"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs multiple replications, and reports KPIs with confidence intervals.
Each replication also leaves a one-row CSV summary, and each scenario a
queue-length-over-time plot, under the configured output directory.
"""

from __future__ import annotations
import argparse, copy, logging, math, os
from statistics import mean, stdev
from typing import Callable, Dict, List, Optional

from scipy.stats import t

from cafeteria.config import apply_overrides, load_cfg
from cafeteria.errors import ConfigError
from cafeteria.simulation import run_simulation
from experiments.export import stats_from_summary, write_summary_csv
from experiments.scenarios import SCENARIOS

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG = os.path.join(ROOT, "config", "baseline.yaml")

log = logging.getLogger(__name__)


def mean_ci(values: List[float], confidence_level: float) -> tuple[float, float]:
    """Return (mean, half-width) using a Student-t critical value with n-1 df."""
    if not values:
        return 0.0, 0.0
    mu = mean(values)
    n = len(values)
    if n < 2:
        return mu, 0.0
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = 1.0 - level
    tcrit = t.ppf(1 - alpha / 2.0, n - 1)
    half = tcrit * (stdev(values) / math.sqrt(n))
    return mu, half


def series(results: List[Dict], extractor: Callable[[Dict], float]) -> List[float]:
    """Collect a numeric series from each replication result."""
    return [float(extractor(res)) for res in results]


def avg_nested(results: List[Dict], key: str) -> Dict[str, float]:
    """Average nested dictionaries (e.g., station_utilization) across replications."""
    if not results:
        return {}
    totals: Dict[str, float] = {}
    for res in results:
        nested = res.get(key, {})
        for subk, val in nested.items():
            totals[subk] = totals.get(subk, 0.0) + float(val)
    return {subk: totals[subk] / len(results) for subk in totals}


def run_replications(cfg: Dict, replications: int) -> List[Dict]:
    """Run `replications` independent days, advancing the seed each time."""
    base_seed = cfg.get("sim", {}).get("seed") or 0
    results = []
    for rep in range(replications):
        rep_cfg = copy.deepcopy(cfg)
        rep_cfg.setdefault("sim", {})["seed"] = base_seed + rep
        results.append(run_simulation(rep_cfg))
    return results


def _queue_at(points: List[Dict[str, float]], minute: float) -> float:
    """Queue total in force at `minute` (last tick at or before it)."""
    val = 0.0
    for pt in points:
        if pt["time_minutes"] > minute:
            break
        val = pt["queue_total"]
    return val


def aggregate_queue_series(results: List[Dict], horizon_minutes: float,
                           interval_minutes: float = 5.0) -> List[Dict[str, float]]:
    """
    Average the number of customers in the system across replications on a
    fixed time grid so runs with different tick times can be compared.
    """
    if not results or horizon_minutes <= 0:
        return []
    if interval_minutes <= 0:
        interval_minutes = 5.0
    steps = int(math.ceil(horizon_minutes / interval_minutes))
    out = []
    for i in range(steps + 1):
        minute = i * interval_minutes
        vals = [_queue_at(res.get("time_series", []), minute) for res in results]
        out.append({"time_minutes": minute, "queue_total": sum(vals) / len(vals)})
    return out


def plot_queue_series(series_pts: List[Dict[str, float]], scenario_name: str, out_dir: str) -> Optional[str]:
    """Persist a PNG of mean customers-in-system versus simulated time."""
    if not series_pts:
        return None
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    x = [pt["time_minutes"] for pt in series_pts]
    y = [pt["queue_total"] for pt in series_pts]
    plt.figure(figsize=(9, 5))
    plt.step(x, y, where="post", label="Customers in system", color="#2563eb")
    plt.xlim(left=0, right=max(x))
    plt.xlabel("Time (minutes)")
    plt.ylabel("Total queue length")
    plt.title(f"{scenario_name}: total queue length over time")
    plt.legend()
    plt.grid(True, linestyle="--", alpha=0.4)
    os.makedirs(out_dir, exist_ok=True)
    safe_name = scenario_name.lower().replace(" ", "_")
    out_path = os.path.join(out_dir, f"{safe_name}_queue_length.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Run cafeteria scenarios with replications.")
    p.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config (default: config/baseline.yaml)")
    p.add_argument("--replications", type=int, default=None, help="override experiments.replications")
    p.add_argument("--scenario", action="append", default=None, help="run only the named scenario(s)")
    p.add_argument("--no-plots", action="store_true", help="skip PNG output")
    p.add_argument("-v", "--verbose", action="store_true", help="log engine progress")
    return p.parse_args(argv)


def main(argv=None):
    """Entry point: drive all scenarios, replications, and report KPIs."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = load_cfg(args.config)
    exp_cfg = cfg.get("experiments", {})
    replications = max(1, int(args.replications or exp_cfg.get("replications", 1)))
    confidence = float(exp_cfg.get("confidence_level", 0.95))
    out_dir = exp_cfg.get("output_dir", "experiments/output")
    if not os.path.isabs(out_dir):
        out_dir = os.path.join(ROOT, out_dir)
    level_pct = confidence * 100.0

    scenarios = SCENARIOS
    if args.scenario:
        wanted = set(args.scenario)
        scenarios = [sc for sc in SCENARIOS if sc["name"] in wanted]
        missing = wanted - {sc["name"] for sc in scenarios}
        if missing:
            raise ConfigError(f"unknown scenario(s): {sorted(missing)}")

    for sc in scenarios:
        sc_cfg = apply_overrides(cfg, sc["overrides"])
        results = run_replications(sc_cfg, replications)
        seed0 = sc_cfg["sim"].get("seed") or 0

        for rep, res in enumerate(results):
            write_summary_csv(stats_from_summary(res), os.path.join(out_dir, f"{sc['name']}_rep{rep + 1}.csv"))

        served = mean_ci(series(results, lambda r: r["customers_served"]), confidence)
        throughput = mean_ci(series(results, lambda r: r["throughput"]), confidence)
        wait = mean_ci(series(results, lambda r: r["average_wait"]), confidence)
        rejected = mean_ci(series(results, lambda r: r["customers_rejected"]), confidence)
        peak = mean_ci(series(results, lambda r: r["peak_queue_length"]), confidence)
        suspensions = mean_ci(series(results, lambda r: r["arrival_suspensions"]), confidence)
        utilizations = {k: round(v, 1) for k, v in avg_nested(results, "station_utilization").items()}
        station_waits = {k: round(v, 1) for k, v in avg_nested(results, "station_avg_wait").items()}

        plot_path = None
        if not args.no_plots:
            horizon_min = sc_cfg["sim"]["opening_hours"] * 60.0
            plot_path = plot_queue_series(aggregate_queue_series(results, horizon_min), sc["name"], out_dir)

        print(f"Scenario: {sc['name']} (replications={replications}, {level_pct:.1f}% CI, "
              f"seeds {seed0}-{seed0 + replications - 1})")
        print(f"  Customers served: {served[0]:.1f} ± {served[1]:.1f}")
        print(f"  Throughput: {throughput[0]:.2f} ± {throughput[1]:.2f} customers/hr")
        print(f"  Avg time in system: {wait[0]:.1f} ± {wait[1]:.1f} s")
        print(f"  Rejected: {rejected[0]:.1f} ± {rejected[1]:.1f}")
        print(f"  Peak queue: {peak[0]:.1f} ± {peak[1]:.1f}")
        print(f"  Arrival suspensions: {suspensions[0]:.1f} ± {suspensions[1]:.1f}")
        print(f"  Station utilization (mean % busy): {utilizations}")
        print(f"  Station queue wait (mean s): {station_waits}")
        print(f"  CSV summaries written to: {out_dir}")
        if plot_path:
            print(f"  Queue-length plot saved to: {plot_path}")
        print("-")


if __name__ == "__main__":
    main()
