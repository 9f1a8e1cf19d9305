import random
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np

from .annealing import SASettings, SAState, SimulatedAnnealing
from .base import Algorithm, Engine, Settings, Tour, random_tour
from .harmony import HarmonySearch, HSASettings, HSAState, pick_replace_index
from .neighborhood import NEIGHBORHOODS, apply_neighborhood, insert, pitch_adjust, swap, two_opt


AnySettings = Union[SASettings, HSASettings]

SETTINGS_TYPES = {Algorithm.SA: SASettings, Algorithm.HSA: HSASettings}
ENGINE_TYPES = {Algorithm.SA: SimulatedAnnealing, Algorithm.HSA: HarmonySearch}


def settings_for(algorithm: Union[Algorithm, str], data: Optional[Mapping[str, Any]] = None) -> AnySettings:
    cls = SETTINGS_TYPES[Algorithm(algorithm)]
    return cls.from_dict(data or {})


def check_settings(algorithm: Union[Algorithm, str], settings: AnySettings) -> None:
    expected = SETTINGS_TYPES[Algorithm(algorithm)]
    if not isinstance(settings, expected):
        raise ValueError(
            f"{Algorithm(algorithm).value} needs {expected.__name__}, got {type(settings).__name__}."
        )
    settings.validate()


def build_engine(
    algorithm: Union[Algorithm, str],
    settings: AnySettings,
    matrix: np.ndarray,
    start_index: int = 0,
    rng: Optional[random.Random] = None,
    initial_tour: Optional[Sequence[int]] = None,
) -> Engine:
    check_settings(algorithm, settings)
    return ENGINE_TYPES[Algorithm(algorithm)](settings, matrix, start_index, rng=rng, initial_tour=initial_tour)


__all__ = [
    "Algorithm",
    "AnySettings",
    "Engine",
    "Settings",
    "Tour",
    "random_tour",
    "SASettings",
    "SAState",
    "SimulatedAnnealing",
    "HSASettings",
    "HSAState",
    "HarmonySearch",
    "pick_replace_index",
    "NEIGHBORHOODS",
    "apply_neighborhood",
    "swap",
    "two_opt",
    "insert",
    "pitch_adjust",
    "settings_for",
    "check_settings",
    "build_engine",
]
