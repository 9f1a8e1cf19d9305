import csv
import io
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import tsplib95


MIN_POINT_COUNT = 3
DISTRIBUTIONS = ("random", "clustered")


@dataclass(frozen=True)
class Point:
    id: str
    x: float
    y: float


RawPoint = Tuple[Optional[str], float, float]


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def require_points(points: Sequence[Point]) -> None:
    if len(points) < MIN_POINT_COUNT:
        raise ValueError(f"Need at least {MIN_POINT_COUNT} points, got {len(points)}.")


def generate_points(
    count: int, distribution: str = "random", rng: Optional[np.random.Generator] = None
) -> List[Point]:
    if distribution not in DISTRIBUTIONS:
        raise ValueError(f"Unknown distribution {distribution!r}; expected one of {DISTRIBUTIONS}.")
    rng = rng if rng is not None else np.random.default_rng()
    count = max(MIN_POINT_COUNT, int(count))
    if distribution == "clustered":
        clusters = 3
        centers = 0.15 + rng.random((clusters, 2)) * 0.7
        points = []
        for i in range(count):
            cx, cy = centers[i % clusters]
            spread = 0.08 + rng.random() * 0.05
            dx, dy = rng.normal(size=2) * spread
            points.append(
                Point(id=f"c{i + 1}", x=_clamp(cx + dx, 0.04, 0.96), y=_clamp(cy + dy, 0.04, 0.96))
            )
        return points
    coords = 0.05 + rng.random((count, 2)) * 0.9
    return [Point(id=f"c{i + 1}", x=float(x), y=float(y)) for i, (x, y) in enumerate(coords)]


def normalize_points(raw: Iterable[RawPoint]) -> List[Point]:
    """Rescale arbitrary coordinates into the unit square, keeping a margin."""
    raw = list(raw)
    if not raw:
        return []
    xs = np.array([r[1] for r in raw], dtype=np.float64)
    ys = np.array([r[2] for r in raw], dtype=np.float64)
    range_x = float(xs.max() - xs.min()) or 1.0
    range_y = float(ys.max() - ys.min()) or 1.0
    norm_x = 0.06 + (xs - xs.min()) / range_x * 0.88
    norm_y = 0.06 + (ys - ys.min()) / range_y * 0.88
    points = []
    for i, (pid, _, _) in enumerate(raw):
        points.append(
            Point(
                id=pid if pid is not None else f"c{i + 1}",
                x=_clamp(float(norm_x[i]), 0.04, 0.96),
                y=_clamp(float(norm_y[i]), 0.04, 0.96),
            )
        )
    return points


def _finite(*values) -> bool:
    try:
        return all(math.isfinite(float(v)) for v in values)
    except (TypeError, ValueError):
        return False


def parse_points_csv(text: str) -> List[Point]:
    raw: List[RawPoint] = []
    sniff = text.replace(";", ",").replace("\t", ",")
    for row in csv.reader(io.StringIO(sniff)):
        cells = [c.strip() for c in row if c.strip()]
        if len(cells) < 2 or not _finite(cells[0], cells[1]):
            # Header lines and junk rows.
            continue
        raw.append((None, float(cells[0]), float(cells[1])))
    return normalize_points(raw)


def parse_points_json(text: str) -> List[Point]:
    data = json.loads(text)
    if not isinstance(data, list):
        return []
    raw: List[RawPoint] = []
    for entry in data:
        if isinstance(entry, (list, tuple)) and len(entry) >= 2:
            if _finite(entry[0], entry[1]):
                raw.append((None, float(entry[0]), float(entry[1])))
        elif isinstance(entry, dict):
            if _finite(entry.get("x"), entry.get("y")):
                pid = entry.get("id")
                raw.append((str(pid) if pid is not None else None, float(entry["x"]), float(entry["y"])))
    return normalize_points(raw)


def load_tsplib_points(path: Path) -> List[Point]:
    problem = tsplib95.load(path)
    coords = problem.node_coords or problem.display_data
    if not coords:
        raise ValueError(f"{path} has no node coordinates.")
    raw = [(str(node), float(xy[0]), float(xy[1])) for node, xy in sorted(coords.items())]
    return normalize_points(raw)


def load_points(path: Path) -> List[Point]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        points = parse_points_json(path.read_text())
    elif suffix == ".tsp":
        points = load_tsplib_points(path)
    else:
        points = parse_points_csv(path.read_text())
    require_points(points)
    return points

