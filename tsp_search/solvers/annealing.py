import math
import random
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from ..distance import tour_length
from .base import Algorithm, Engine, Settings, Tour, check_tour, random_tour
from .neighborhood import NEIGHBORHOODS, apply_neighborhood


TEMPERATURE_FLOOR = 1e-4


@dataclass
class SASettings(Settings):
    initial_temperature: float = 1500.0
    cooling_rate: float = 0.988
    iterations: int = 12000
    neighborhood: str = "two-opt"
    reheat_interval: int = 2000
    reheat_multiplier: float = 1.15

    def validate(self) -> None:
        if not self.initial_temperature > 0:
            raise ValueError("initial_temperature must be > 0.")
        if not 0 < self.cooling_rate < 1:
            raise ValueError("cooling_rate must be in (0, 1).")
        if self.iterations < 0:
            raise ValueError("iterations must be >= 0.")
        if self.neighborhood not in NEIGHBORHOODS:
            raise ValueError(f"neighborhood must be one of {NEIGHBORHOODS}.")
        if self.reheat_interval < 0:
            raise ValueError("reheat_interval must be >= 0 (0 disables reheating).")
        if self.reheat_multiplier < 1:
            raise ValueError("reheat_multiplier must be >= 1.")


@dataclass
class SAState:
    iteration: int
    temperature: float
    current_tour: Tour
    current_distance: float
    best_tour: Tour
    best_distance: float
    iterations_since_best: int = 0

    def to_state(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_state(cls, state: Dict) -> "SAState":
        return cls(
            iteration=int(state["iteration"]),
            temperature=float(state["temperature"]),
            current_tour=list(state["current_tour"]),
            current_distance=float(state["current_distance"]),
            best_tour=list(state["best_tour"]),
            best_distance=float(state["best_distance"]),
            iterations_since_best=int(state.get("iterations_since_best", 0)),
        )


def create_sa_state(
    matrix: np.ndarray,
    settings: SASettings,
    start_index: int,
    rng: random.Random,
    initial_tour: Optional[Sequence[int]] = None,
) -> SAState:
    tour = list(initial_tour) if initial_tour is not None else random_tour(matrix.shape[0], start_index, rng)
    dist = tour_length(matrix, tour)
    return SAState(
        iteration=0,
        temperature=float(settings.initial_temperature),
        current_tour=tour,
        current_distance=dist,
        best_tour=tour[:],
        best_distance=dist,
    )


class SimulatedAnnealing(Engine):
    algorithm = Algorithm.SA

    def __init__(
        self,
        settings: SASettings,
        matrix: np.ndarray,
        start_index: int = 0,
        rng: Optional[random.Random] = None,
        initial_tour: Optional[Sequence[int]] = None,
        state: Optional[SAState] = None,
    ):
        settings.validate()
        super().__init__(matrix, start_index, settings.iterations, rng)
        self.settings = settings
        if state is None:
            if initial_tour is not None:
                check_tour(initial_tour, self.point_count, start_index)
            state = create_sa_state(matrix, settings, start_index, self.rng, initial_tour)
        self.state = state

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
    def temperature(self) -> float:
        return self.state.temperature

    def accept(self, delta: float) -> bool:
        """Metropolis criterion."""
        if delta < 0:
            return True
        return self.rng.random() < math.exp(-delta / self.state.temperature)

    def step(self) -> None:
        state = self.state
        cfg = self.settings
        candidate = apply_neighborhood(state.current_tour, cfg.neighborhood, self.rng)
        candidate_distance = tour_length(self.matrix, candidate)
        if self.accept(candidate_distance - state.current_distance):
            state.current_tour = candidate
            state.current_distance = candidate_distance

        if state.current_distance < state.best_distance:
            state.best_distance = state.current_distance
            state.best_tour = state.current_tour[:]
            state.iterations_since_best = 0
        else:
            state.iterations_since_best += 1

        state.temperature = max(state.temperature * cfg.cooling_rate, TEMPERATURE_FLOOR)
        if cfg.reheat_interval > 0 and state.iterations_since_best >= cfg.reheat_interval:
            # Reheat keeps the current and best tours; only the temperature moves.
            state.temperature = max(state.temperature, cfg.initial_temperature * max(1.0, cfg.reheat_multiplier))
            state.iterations_since_best = 0
        state.iteration += 1

    def extras(self) -> Dict[str, float]:
        return {"temperature": self.state.temperature}
