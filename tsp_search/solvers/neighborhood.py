"""
Perturbation operators over a tour. Every operator returns a new list and
never touches position 0, which holds the start index.
"""

import random
from typing import Callable, Dict, Sequence

from .base import Tour


NEIGHBORHOODS = ("swap", "two-opt", "insert")


def _pick_position(n: int, rng: random.Random) -> int:
    return rng.randint(1, n - 1)


def _pick_other(n: int, exclude: int, rng: random.Random) -> int:
    # Uniform over [1, n-1] without `exclude`.
    pos = rng.randint(1, n - 2)
    return pos + 1 if pos >= exclude else pos


def swap(tour: Sequence[int], rng: random.Random) -> Tour:
    nxt = list(tour)
    n = len(nxt)
    if n <= 2:
        return nxt
    i = _pick_position(n, rng)
    j = _pick_other(n, i, rng)
    nxt[i], nxt[j] = nxt[j], nxt[i]
    return nxt


def two_opt(tour: Sequence[int], rng: random.Random) -> Tour:
    nxt = list(tour)
    n = len(nxt)
    if n <= 2:
        return nxt
    i = rng.randint(1, n - 2)
    j = rng.randint(i + 1, n - 1)
    nxt[i : j + 1] = reversed(nxt[i : j + 1])
    return nxt


def insert(tour: Sequence[int], rng: random.Random) -> Tour:
    nxt = list(tour)
    n = len(nxt)
    if n <= 2:
        return nxt
    src = _pick_position(n, rng)
    dst = _pick_other(n, src, rng)
    moved = nxt.pop(src)
    nxt.insert(dst, moved)
    return nxt


OPERATORS: Dict[str, Callable[[Sequence[int], random.Random], Tour]] = {
    "swap": swap,
    "two-opt": two_opt,
    "insert": insert,
}


def apply_neighborhood(tour: Sequence[int], operator: str, rng: random.Random) -> Tour:
    return OPERATORS[operator](tour, rng)


def pitch_adjust(tour: Sequence[int], rng: random.Random) -> Tour:
    if rng.random() < 0.5:
        return swap(tour, rng)
    return two_opt(tour, rng)
