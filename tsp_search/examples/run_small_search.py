import numpy as np

from tsp_search.data import generate_points
from tsp_search.orchestrator import run_search
from tsp_search.solvers import HSASettings, SASettings


def main():
    points = generate_points(40, "clustered", rng=np.random.default_rng(7))
    sa = run_search(points, "SA", SASettings(iterations=4000), seed=7)
    hsa = run_search(points, "HSA", HSASettings(iterations=4000), seed=7)
    for result in (sa, hsa):
        print(
            f"{result.algorithm.value}: best={result.best_distance:.4f} "
            f"samples={len(result.convergence)} runtime={result.runtime_ms:.0f} ms"
        )


if __name__ == "__main__":
    main()
