import json

import numpy as np
import pytest

from tsp_search.data import (
    MIN_POINT_COUNT,
    generate_points,
    load_points,
    load_tsplib_points,
    normalize_points,
    parse_points_csv,
    parse_points_json,
    require_points,
)


TSPLIB_SQUARE = "\n".join(
    [
        "NAME: square4",
        "TYPE: TSP",
        "COMMENT: unit square",
        "DIMENSION: 4",
        "EDGE_WEIGHT_TYPE: EUC_2D",
        "NODE_COORD_SECTION",
        "1 0 0",
        "2 10 0",
        "3 10 10",
        "4 0 10",
        "EOF",
        "",
    ]
)


@pytest.mark.parametrize("distribution", ["random", "clustered"])
def test_generate_points_in_bounds(distribution):
    points = generate_points(200, distribution, rng=np.random.default_rng(0))
    assert len(points) == 200
    assert len({p.id for p in points}) == 200
    assert all(0.04 <= p.x <= 0.96 and 0.04 <= p.y <= 0.96 for p in points)


def test_generate_points_clamps_count_and_rejects_unknown_distribution():
    assert len(generate_points(1, rng=np.random.default_rng(0))) == MIN_POINT_COUNT
    with pytest.raises(ValueError):
        generate_points(10, "spiral")


def test_generate_points_reproducible():
    a = generate_points(10, "clustered", rng=np.random.default_rng(5))
    b = generate_points(10, "clustered", rng=np.random.default_rng(5))
    assert a == b


def test_normalize_points():
    points = normalize_points([(None, 0, 0), ("far", 10, 5), (None, 5, 10)])
    assert [p.id for p in points] == ["c1", "far", "c3"]
    assert [p.x for p in points] == pytest.approx([0.06, 0.94, 0.5])
    assert [p.y for p in points] == pytest.approx([0.06, 0.5, 0.94])
    flat = normalize_points([(None, 3, 1), (None, 3, 2)])
    assert [p.x for p in flat] == pytest.approx([0.06, 0.06])
    assert normalize_points([]) == []


def test_parse_csv_skips_headers_and_junk():
    points = parse_points_csv("x;y\n1;2\n3\t4\nfoo,bar\n5,6\n\n")
    assert len(points) == 3
    assert points[0].x == pytest.approx(0.06)
    assert points[2].y == pytest.approx(0.94)


def test_parse_json_pairs_and_objects():
    text = json.dumps(
        [[0, 0], {"id": "a", "x": 1, "y": 1}, {"x": "nan", "y": 0}, [2, "bad"], "junk", {"x": 2, "y": 0}]
    )
    points = parse_points_json(text)
    assert [p.id for p in points] == ["c1", "a", "c3"]
    assert parse_points_json('{"x": 1}') == []


def test_load_tsplib_points(tmp_path):
    path = tmp_path / "square4.tsp"
    path.write_text(TSPLIB_SQUARE)
    points = load_tsplib_points(path)
    assert [p.id for p in points] == ["1", "2", "3", "4"]
    assert (points[0].x, points[0].y) == pytest.approx((0.06, 0.06))
    assert (points[2].x, points[2].y) == pytest.approx((0.94, 0.94))
    assert load_points(path) == points


def test_load_points_by_suffix(tmp_path):
    csv_path = tmp_path / "pts.csv"
    csv_path.write_text("0,0\n1,0\n1,1\n")
    json_path = tmp_path / "pts.json"
    json_path.write_text("[[0,0],[1,0],[1,1]]")
    assert load_points(csv_path) == load_points(json_path)
    with pytest.raises(FileNotFoundError):
        load_points(tmp_path / "missing.csv")
    small = tmp_path / "small.csv"
    small.write_text("0,0\n1,1\n")
    with pytest.raises(ValueError):
        load_points(small)


def test_require_points():
    require_points(generate_points(3))
    with pytest.raises(ValueError):
        require_points([])
