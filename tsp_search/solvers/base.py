import dataclasses
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np


Tour = List[int]


class Algorithm(str, Enum):
    SA = "SA"
    HSA = "HSA"


def random_tour(point_count: int, start_index: int, rng: random.Random) -> Tour:
    rest = [i for i in range(point_count) if i != start_index]
    rng.shuffle(rest)
    return [start_index] + rest


class Settings(ABC):
    """Shared behaviour for the per-algorithm settings dataclasses."""

    iterations: int

    @abstractmethod
    def validate(self) -> None:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        # Keys from older preset files are dropped rather than rejected.
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)


def check_tour(tour: Sequence[int], point_count: int, start_index: int) -> None:
    if len(tour) != point_count:
        raise ValueError(f"Tour has {len(tour)} entries, expected {point_count}.")
    if sorted(tour) != list(range(point_count)):
        raise ValueError("Tour must be a permutation of all point indices.")
    if tour[0] != start_index:
        raise ValueError(f"Tour must begin at start index {start_index}.")


class Engine(ABC):
    """
    A resumable search: owns one state object and advances it one iteration
    per ``step()`` call until ``done``.
    """

    algorithm: Algorithm

    def __init__(self, matrix: np.ndarray, start_index: int, iterations: int, rng: Optional[random.Random] = None):
        self.matrix = matrix
        self.start_index = start_index
        self.iterations = iterations
        self.rng = rng or random.Random()

    @property
    def point_count(self) -> int:
        return int(self.matrix.shape[0])

    @property
    @abstractmethod
    def iteration(self) -> int:
        raise NotImplementedError

    @property
    @abstractmethod
    def best_tour(self) -> Tour:
        raise NotImplementedError

    @property
    @abstractmethod
    def best_distance(self) -> float:
        raise NotImplementedError

    @property
    def done(self) -> bool:
        return self.iteration >= self.iterations

    @abstractmethod
    def step(self) -> None:
        raise NotImplementedError

    def extras(self) -> Dict[str, float]:
        """Algorithm-specific fields for progress snapshots."""
        return {}
