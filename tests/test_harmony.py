import random

import numpy as np
import pytest

from tsp_search.data import generate_points
from tsp_search.distance import build_matrix, tour_length
from tsp_search.solvers import HarmonySearch, HSASettings, HSAState, pick_replace_index


def test_pick_replace_index_protects_elites():
    rng = random.Random(0)
    distances = [5.0, 1.0, 3.0, 9.0, 2.0]
    seen = set()
    for _ in range(300):
        idx = pick_replace_index(distances, 2, rng)
        assert idx not in (1, 4)
        seen.add(idx)
    assert seen == {0, 2, 3}


def test_pick_replace_index_without_elites_targets_worst():
    rng = random.Random(0)
    assert pick_replace_index([5.0, 1.0, 9.0, 2.0], 0, rng) == 2
    assert pick_replace_index([4.0], 3, rng) == 0
    # Elite count clamps to len - 1, leaving only the worst slot.
    assert {pick_replace_index([1.0, 2.0, 3.0], 10, rng) for _ in range(50)} == {2}


def test_memory_size_and_elitism_hold_every_step():
    points = generate_points(15, rng=np.random.default_rng(2))
    m = build_matrix(points)
    settings = HSASettings(memory_size=8, hmcr=0.9, par=0.5, iterations=1500, elite_count=3)
    engine = HarmonySearch(settings, m, rng=random.Random(2))
    replacements = 0
    while not engine.done:
        before = list(engine.state.memory_distances)
        replaced = engine.step()
        assert len(engine.state.memory) == 8
        assert len(engine.state.memory_distances) == 8
        if replaced:
            replacements += 1
            target = engine.last_replaced
            better_or_equal = sum(1 for j, d in enumerate(before) if j != target and d <= before[target])
            assert better_or_equal >= 3
            assert engine.state.memory_distances[target] < before[target]
    assert replacements == engine.memory_updates
    assert replacements > 0


def test_best_tracks_memory():
    points = generate_points(12, rng=np.random.default_rng(3))
    m = build_matrix(points)
    engine = HarmonySearch(HSASettings(iterations=800), m, 3, rng=random.Random(3))
    previous = engine.best_distance
    while not engine.done:
        engine.step()
        assert engine.best_distance <= previous
        assert engine.best_distance <= min(engine.state.memory_distances) + 1e-12
        previous = engine.best_distance
    assert tour_length(m, engine.best_tour) == pytest.approx(engine.best_distance)
    assert all(t[0] == 3 for t in engine.state.memory)


@pytest.mark.parametrize("seed", range(5))
def test_single_slot_memory_finds_square_optimum(square_points, seed):
    m = build_matrix(square_points)
    settings = HSASettings(memory_size=1, iterations=1000)
    engine = HarmonySearch(settings, m, 0, rng=random.Random(seed))
    while not engine.done:
        engine.step()
    assert len(engine.state.memory) == 1
    assert engine.best_distance == pytest.approx(4.0)


def test_seed_tour_occupies_first_slot(square_points):
    m = build_matrix(square_points)
    engine = HarmonySearch(HSASettings(memory_size=5), m, 0, initial_tour=[0, 1, 2, 3], rng=random.Random(1))
    assert engine.state.memory[0] == [0, 1, 2, 3]
    assert engine.best_distance == pytest.approx(4.0)


def test_memory_and_elite_counts_are_clamped(square_points):
    m = build_matrix(square_points)
    engine = HarmonySearch(HSASettings(memory_size=3, elite_count=10), m, rng=random.Random(0))
    assert engine.elite_count == 2
    engine = HarmonySearch(HSASettings(memory_size=0, elite_count=2), m, rng=random.Random(0))
    assert engine.memory_size == 1
    assert engine.elite_count == 0
    engine = HarmonySearch(HSASettings(memory_size=4, elite_count=-3), m, rng=random.Random(0))
    assert engine.elite_count == 0


def test_pure_improvisation_generates_valid_tours(square_points):
    m = build_matrix(square_points)
    engine = HarmonySearch(HSASettings(memory_size=4, hmcr=0.0, iterations=50), m, 2, rng=random.Random(4))
    for _ in range(50):
        tour = engine.improvise()
        assert tour[0] == 2 and sorted(tour) == [0, 1, 2, 3]


@pytest.mark.parametrize("changes", [{"hmcr": 1.5}, {"par": -0.1}, {"iterations": -2}])
def test_invalid_settings_rejected(square_points, changes):
    with pytest.raises(ValueError):
        HarmonySearch(HSASettings(**changes), build_matrix(square_points))


def test_checkpoint_resume_keeps_memory_updates():
    m = build_matrix(generate_points(18, rng=np.random.default_rng(6)))
    settings = HSASettings(memory_size=10, iterations=600, elite_count=2)

    full = HarmonySearch(settings, m, rng=random.Random(8))
    while not full.done:
        full.step()

    first = HarmonySearch(settings, m, rng=random.Random(8))
    for _ in range(300):
        first.step()
    saved = first.state.to_state()
    rng = random.Random()
    rng.setstate(first.rng.getstate())
    second = HarmonySearch(settings, m, rng=rng, state=HSAState.from_state(saved))
    assert second.memory_updates == first.memory_updates
    while not second.done:
        second.step()

    assert second.iteration == full.iteration
    assert second.best_distance == full.best_distance
    assert second.memory_updates == full.memory_updates
    assert second.extras() == {"memory_updates": full.memory_updates}
