import pytest

from tsp_search.data import Point


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture
def square_points():
    return [Point("a", 0.0, 0.0), Point("b", 1.0, 0.0), Point("c", 1.0, 1.0), Point("d", 0.0, 1.0)]


@pytest.fixture
def clock():
    return FakeClock()
