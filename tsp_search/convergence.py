from dataclasses import dataclass
from typing import List, Optional, Tuple


DEFAULT_TARGET_POINTS = 200


@dataclass(frozen=True)
class ConvergencePoint:
    iteration: int
    distance: float


def sample_interval(iterations: int, target_points: int = DEFAULT_TARGET_POINTS) -> int:
    return max(1, int(iterations) // max(1, int(target_points)))


class ConvergenceSampler:
    """
    Decimates the per-iteration best distance into a bounded trace.

    The initial state and the final state are always recorded; in between a
    point is kept every ``every`` iterations. Values are best-so-far
    distances so the trace never increases.
    """

    def __init__(self, iterations: int, target_points: int = DEFAULT_TARGET_POINTS):
        self.every = sample_interval(iterations, target_points)
        self.points: List[ConvergencePoint] = []

    @property
    def last(self) -> Optional[ConvergencePoint]:
        return self.points[-1] if self.points else None

    def _append(self, iteration: int, best_distance: float) -> ConvergencePoint:
        # Guard against callers passing a stale (larger) best.
        if self.points:
            best_distance = min(best_distance, self.points[-1].distance)
        point = ConvergencePoint(iteration=int(iteration), distance=float(best_distance))
        self.points.append(point)
        return point

    def start(self, best_distance: float) -> ConvergencePoint:
        self.points = []
        return self._append(0, best_distance)

    def observe(self, iteration: int, best_distance: float) -> Optional[ConvergencePoint]:
        """Record a point if ``iteration`` falls on the sampling interval."""
        if iteration % self.every != 0:
            return None
        last = self.last
        if last is not None and last.iteration >= iteration:
            return None
        return self._append(iteration, best_distance)

    def finish(self, iteration: int, best_distance: float) -> Optional[ConvergencePoint]:
        last = self.last
        if last is not None and last.iteration == iteration:
            return None
        return self._append(iteration, best_distance)

    def trace(self) -> Tuple[ConvergencePoint, ...]:
        return tuple(self.points)
