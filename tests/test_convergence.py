import pytest

from tsp_search.convergence import ConvergenceSampler, sample_interval


def _run(sampler: ConvergenceSampler, iterations: int):
    best = 1000.0
    sampler.start(best)
    for it in range(1, iterations + 1):
        if it % 7 == 0:
            best -= 0.01
        sampler.observe(it, best)
    sampler.finish(iterations, best)
    return best


def test_sample_interval():
    assert sample_interval(10000, 200) == 50
    assert sample_interval(12000, 160) == 75
    assert sample_interval(100, 200) == 1
    assert sample_interval(0, 200) == 1


@pytest.mark.parametrize("iterations", [0, 1, 7, 199, 200, 399, 1000, 12345, 100000])
def test_trace_is_bounded_and_ends_at_final_best(iterations):
    target = 200
    sampler = ConvergenceSampler(iterations, target)
    final = _run(sampler, iterations)
    trace = sampler.trace()
    assert len(trace) <= 2 * target + 1
    assert trace[0].iteration == 0
    assert trace[-1].iteration == iterations
    assert trace[-1].distance == final
    for a, b in zip(trace, trace[1:]):
        assert b.iteration > a.iteration
        assert b.distance <= a.distance


def test_exact_multiple_budget_hits_target():
    sampler = ConvergenceSampler(10000, 200)
    _run(sampler, 10000)
    # 200 interval points plus the initial state; the last point is already final.
    assert len(sampler.trace()) == 201


def test_final_point_added_off_interval():
    sampler = ConvergenceSampler(1003, 200)
    _run(sampler, 1003)
    trace = sampler.trace()
    assert trace[-2].iteration == 1000
    assert trace[-1].iteration == 1003


def test_observe_ignores_off_interval_and_repeats():
    sampler = ConvergenceSampler(1000, 100)
    sampler.start(10.0)
    assert sampler.observe(5, 9.0) is None
    point = sampler.observe(10, 8.0)
    assert point is not None and point.distance == 8.0
    assert sampler.observe(10, 7.0) is None
    assert sampler.finish(10, 8.0) is None
    assert len(sampler.trace()) == 2
