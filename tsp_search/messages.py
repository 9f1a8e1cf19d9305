"""
Messages exchanged with a run orchestrator, and the result record a
finished run produces.

Inbound: ``InitMessage``, ``PauseMessage``, ``ResumeMessage``, ``StopMessage``.
Outbound: ``ProgressMessage``, ``CompleteMessage``, ``StoppedMessage``.
All messages are frozen and carry tuples rather than lists, so a consumer
can never reach back into a running search's state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from .convergence import ConvergencePoint
from .data import Point, require_points
from .solvers import AnySettings, Algorithm, check_settings, settings_for
from .solvers.base import check_tour


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class InitMessage:
    run_id: str
    algorithm: Algorithm
    points: Tuple[Point, ...]
    start_index: int
    settings: AnySettings
    seed_tour: Optional[Tuple[int, ...]] = None
    batch_size: Optional[int] = None
    emit_interval_ms: Optional[float] = None
    # Seed for the run's random source; None draws from system entropy.
    seed: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "algorithm", Algorithm(self.algorithm))
        object.__setattr__(self, "points", tuple(self.points))
        require_points(self.points)
        if not 0 <= self.start_index < len(self.points):
            raise ValueError(f"start_index {self.start_index} out of range for {len(self.points)} points.")
        check_settings(self.algorithm, self.settings)
        # Private copy so later edits by the caller cannot leak into the run.
        object.__setattr__(self, "settings", self.settings.replace())
        if self.seed_tour is not None:
            object.__setattr__(self, "seed_tour", tuple(self.seed_tour))
            check_tour(self.seed_tour, len(self.points), self.start_index)
        if self.batch_size is not None and self.batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        if self.emit_interval_ms is not None and self.emit_interval_ms < 0:
            raise ValueError("emit_interval_ms must be >= 0.")


@dataclass(frozen=True)
class PauseMessage:
    run_id: str


@dataclass(frozen=True)
class ResumeMessage:
    run_id: str


@dataclass(frozen=True)
class StopMessage:
    run_id: str


ControlMessage = Union[PauseMessage, ResumeMessage, StopMessage]
InboundMessage = Union[InitMessage, ControlMessage]


@dataclass(frozen=True)
class ProgressMessage:
    run_id: str
    algorithm: Algorithm
    iteration: int
    iterations: int
    best_distance: float
    best_tour: Tuple[int, ...]
    elapsed_ms: float
    temperature: Optional[float] = None
    memory_updates: Optional[int] = None
    new_sample_point: Optional[ConvergencePoint] = None


@dataclass(frozen=True)
class CompleteMessage(ProgressMessage):
    convergence: Tuple[ConvergencePoint, ...] = ()
    settings: Optional[AnySettings] = None
    created_at: str = ""

    def to_result(self) -> "RunResult":
        return RunResult(
            id=self.run_id,
            algorithm=self.algorithm,
            best_tour=self.best_tour,
            best_distance=self.best_distance,
            runtime_ms=self.elapsed_ms,
            convergence=self.convergence,
            settings=self.settings,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class StoppedMessage:
    run_id: str


OutboundMessage = Union[ProgressMessage, CompleteMessage, StoppedMessage]


@dataclass(frozen=True)
class RunResult:
    id: str
    algorithm: Algorithm
    best_tour: Tuple[int, ...]
    best_distance: float
    runtime_ms: float
    convergence: Tuple[ConvergencePoint, ...]
    settings: AnySettings
    created_at: str = field(default_factory=utc_now)

    @property
    def iterations(self) -> int:
        return int(self.settings.iterations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "algorithm": self.algorithm.value,
            "bestRoute": list(self.best_tour),
            "bestDistance": self.best_distance,
            "runtimeMs": self.runtime_ms,
            "convergence": [{"iteration": p.iteration, "distance": p.distance} for p in self.convergence],
            "settings": self.settings.to_dict(),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunResult":
        algorithm = Algorithm(data["algorithm"])
        return cls(
            id=str(data["id"]),
            algorithm=algorithm,
            best_tour=tuple(int(i) for i in data["bestRoute"]),
            best_distance=float(data["bestDistance"]),
            runtime_ms=float(data["runtimeMs"]),
            convergence=tuple(
                ConvergencePoint(iteration=int(p["iteration"]), distance=float(p["distance"]))
                for p in data.get("convergence", [])
            ),
            settings=settings_for(algorithm, data.get("settings")),
            created_at=str(data.get("createdAt", "")),
        )
