import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np

from .messages import RunResult
from .solvers import Algorithm


class ResultHistory:
    """Per-algorithm run history, newest first."""

    def __init__(self):
        self.history: Dict[Algorithm, List[RunResult]] = {a: [] for a in Algorithm}
        self.last: Dict[Algorithm, RunResult] = {}

    def add(self, result: RunResult) -> None:
        self.history[result.algorithm].insert(0, result)
        self.last[result.algorithm] = result

    def runs(self, algorithm: Optional[Algorithm] = None) -> List[RunResult]:
        if algorithm is not None:
            return list(self.history[Algorithm(algorithm)])
        return [r for a in Algorithm for r in self.history[a]]

    def clear(self) -> None:
        for runs in self.history.values():
            runs.clear()

    def to_state(self) -> Dict:
        return {a.value: [r.to_dict() for r in runs] for a, runs in self.history.items()}

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_state(), indent=2))

    @classmethod
    def load(cls, path: Path) -> "ResultHistory":
        state = json.loads(Path(path).read_text())
        history = cls()
        for algorithm in Algorithm:
            # Stored newest first; replay oldest first so ordering survives.
            for item in reversed(state.get(algorithm.value, [])):
                history.add(RunResult.from_dict(item))
        return history


def summarize(runs: Iterable[RunResult]) -> Dict[str, float]:
    runs = list(runs)
    if not runs:
        return {"runs": 0, "best": 0.0, "worst": 0.0, "mean": 0.0, "std": 0.0, "runtime_ms": 0.0}
    distances = np.array([r.best_distance for r in runs], dtype=np.float64)
    runtimes = np.array([r.runtime_ms for r in runs], dtype=np.float64)
    std = float(distances.std(ddof=1)) if len(runs) > 1 else 0.0
    return {
        "runs": len(runs),
        "best": float(distances.min()),
        "worst": float(distances.max()),
        "mean": float(distances.mean()),
        "std": std,
        "runtime_ms": float(runtimes.mean()),
    }


def runs_to_csv(runs: Iterable[RunResult]) -> str:
    header = ["id", "algorithm", "bestDistance", "runtimeMs", "iterations", "createdAt"]
    rows = [header]
    for run in runs:
        rows.append(
            [
                run.id,
                run.algorithm.value,
                f"{run.best_distance:.6f}",
                f"{run.runtime_ms:.2f}",
                str(run.iterations),
                run.created_at,
            ]
        )
    return "\n".join(",".join(row) for row in rows)


def runs_to_json(runs: Iterable[RunResult]) -> str:
    return json.dumps([r.to_dict() for r in runs], indent=2)


def _algo_section(label: str, runs: List[RunResult]) -> str:
    if not runs:
        return f"{label}: no runs available"
    stats = summarize(runs)
    return "\n".join(
        [
            f"{label}:",
            f"  runs: {stats['runs']}",
            f"  best: {stats['best']:.4f}",
            f"  worst: {stats['worst']:.4f}",
            f"  mean: {stats['mean']:.4f}",
            f"  std: {stats['std']:.4f}",
            f"  avg runtime (ms): {stats['runtime_ms']:.2f}",
        ]
    )


def build_summary_report(point_count: int, history: ResultHistory) -> str:
    return "\n".join(
        [
            "TSP Optimization Summary Report",
            "=================================",
            f"Points: {point_count}",
            "",
            _algo_section("Simulated Annealing", history.runs(Algorithm.SA)),
            "",
            _algo_section("Harmony Search", history.runs(Algorithm.HSA)),
        ]
    )
