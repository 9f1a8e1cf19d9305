import math
import random
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..distance import tour_length
from .base import Algorithm, Engine, Settings, Tour, check_tour, random_tour
from .neighborhood import pitch_adjust


@dataclass
class HSASettings(Settings):
    memory_size: int = 24
    hmcr: float = 0.93
    par: float = 0.32
    iterations: int = 10000
    elite_count: int = 2

    def validate(self) -> None:
        if not 0 <= self.hmcr <= 1:
            raise ValueError("hmcr must be in [0, 1].")
        if not 0 <= self.par <= 1:
            raise ValueError("par must be in [0, 1].")
        if self.iterations < 0:
            raise ValueError("iterations must be >= 0.")


def clamp_memory_size(memory_size) -> int:
    if not isinstance(memory_size, (int, float)) or not math.isfinite(memory_size):
        return 1
    return max(1, int(memory_size))


def clamp_elite_count(elite_count, memory_size: int) -> int:
    if not isinstance(elite_count, (int, float)) or not math.isfinite(elite_count) or memory_size <= 1:
        return 0
    return min(max(int(elite_count), 0), memory_size - 1)


def worst_index(distances: Sequence[float]) -> int:
    worst = 0
    for i in range(1, len(distances)):
        if distances[i] > distances[worst]:
            worst = i
    return worst


def pick_replace_index(distances: Sequence[float], elite_count: int, rng: random.Random) -> int:
    """
    Choose the memory slot a new harmony may overwrite. The ``elite_count``
    best slots are protected; with no elites the worst slot is chosen.
    Ties between equal distances are broken by slot order.
    """
    if len(distances) <= 1:
        return 0
    elite = clamp_elite_count(elite_count, len(distances))
    if elite <= 0:
        return worst_index(distances)
    ranked = sorted(range(len(distances)), key=lambda i: distances[i])
    return rng.choice(ranked[elite:])


@dataclass
class HSAState:
    iteration: int
    memory: List[Tour]
    memory_distances: List[float]
    best_tour: Tour
    best_distance: float
    memory_updates: int = 0

    def to_state(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_state(cls, state: Dict) -> "HSAState":
        return cls(
            iteration=int(state["iteration"]),
            memory=[list(t) for t in state["memory"]],
            memory_distances=[float(d) for d in state["memory_distances"]],
            best_tour=list(state["best_tour"]),
            best_distance=float(state["best_distance"]),
            memory_updates=int(state.get("memory_updates", 0)),
        )


def create_hsa_state(
    matrix: np.ndarray,
    settings: HSASettings,
    start_index: int,
    rng: random.Random,
    initial_tour: Optional[Sequence[int]] = None,
) -> HSAState:
    size = clamp_memory_size(settings.memory_size)
    memory: List[Tour] = []
    if initial_tour is not None:
        memory.append(list(initial_tour))
    while len(memory) < size:
        memory.append(random_tour(matrix.shape[0], start_index, rng))
    distances = [tour_length(matrix, tour) for tour in memory]
    best = min(range(size), key=lambda i: distances[i])
    return HSAState(
        iteration=0,
        memory=memory,
        memory_distances=distances,
        best_tour=memory[best][:],
        best_distance=distances[best],
    )


class HarmonySearch(Engine):
    algorithm = Algorithm.HSA

    def __init__(
        self,
        settings: HSASettings,
        matrix: np.ndarray,
        start_index: int = 0,
        rng: Optional[random.Random] = None,
        initial_tour: Optional[Sequence[int]] = None,
        state: Optional[HSAState] = None,
    ):
        settings.validate()
        super().__init__(matrix, start_index, settings.iterations, rng)
        self.settings = settings
        if state is None:
            if initial_tour is not None:
                check_tour(initial_tour, self.point_count, start_index)
            state = create_hsa_state(matrix, settings, start_index, self.rng, initial_tour)
        self.state = state
        self.memory_size = len(state.memory)
        self.elite_count = clamp_elite_count(settings.elite_count, self.memory_size)
        self.last_replaced: Optional[int] = None

    @property
    def iteration(self) -> int:
        return self.state.iteration

    @property
    def best_tour(self) -> Tour:
        return self.state.best_tour

    @property
    def best_distance(self) -> float:
        return self.state.best_distance

    @property
    def memory_updates(self) -> int:
        return self.state.memory_updates

    def improvise(self) -> Tour:
        state = self.state
        if self.rng.random() < self.settings.hmcr:
            candidate = state.memory[self.rng.randrange(len(state.memory))][:]
            if self.rng.random() < self.settings.par:
                candidate = pitch_adjust(candidate, self.rng)
            return candidate
        return random_tour(self.point_count, self.start_index, self.rng)

    def step(self) -> bool:
        """Run one iteration; returns True when a memory slot was replaced."""
        state = self.state
        candidate = self.improvise()
        candidate_distance = tour_length(self.matrix, candidate)
        target = pick_replace_index(state.memory_distances, self.elite_count, self.rng)

        replaced = False
        if candidate_distance < state.memory_distances[target]:
            state.memory[target] = candidate
            state.memory_distances[target] = candidate_distance
            replaced = True
            state.memory_updates += 1
        self.last_replaced = target if replaced else None

        if candidate_distance < state.best_distance:
            state.best_distance = candidate_distance
            state.best_tour = candidate[:]

        state.iteration += 1
        return replaced

    def extras(self) -> Dict[str, float]:
        return {"memory_updates": self.state.memory_updates}
