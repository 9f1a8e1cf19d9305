import math
from typing import List, Sequence

import networkx as nx
import numpy as np

from .data import Point


def build_matrix(points: Sequence[Point]) -> np.ndarray:
    """Pairwise Euclidean distances; symmetric with a zero diagonal."""
    if not points:
        return np.zeros((0, 0), dtype=np.float64)
    coords = np.array([(p.x, p.y) for p in points], dtype=np.float64)
    diff = coords[:, None, :] - coords[None, :, :]
    matrix = np.hypot(diff[..., 0], diff[..., 1])
    np.fill_diagonal(matrix, 0.0)
    return matrix


def distance(matrix: np.ndarray, i: int, j: int) -> float:
    return float(matrix[i, j])


def tour_length(matrix: np.ndarray, tour: Sequence[int]) -> float:
    if len(tour) < 2:
        return 0.0
    idx = np.asarray(tour, dtype=np.intp)
    return float(matrix[idx, np.roll(idx, -1)].sum())


def point_distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def route_distance(points: Sequence[Point], tour: Sequence[int]) -> float:
    # Direct summation over coordinates, no matrix.
    n = len(tour)
    if n < 2:
        return 0.0
    dist = 0.0
    for i in range(n):
        a = points[tour[i]]
        b = points[tour[(i + 1) % n]]
        dist += point_distance(a, b)
    return float(dist)


def to_graph(matrix: np.ndarray) -> nx.Graph:
    """Complete weighted graph over point indices."""
    graph = nx.from_numpy_array(matrix)
    # from_numpy_array skips zero entries, so coincident points need their edge back.
    n = matrix.shape[0]
    for i in range(n):
        for j in range(i + 1, n):
            if not graph.has_edge(i, j):
                graph.add_edge(i, j, weight=float(matrix[i, j]))
    return graph


def nearest_neighbor_tour(matrix: np.ndarray, start_index: int) -> List[int]:
    if not 0 <= start_index < matrix.shape[0]:
        raise ValueError(f"start_index {start_index} out of range for {matrix.shape[0]} points.")
    graph = to_graph(matrix)
    tour = [start_index]
    unvisited = set(graph.nodes())
    unvisited.remove(start_index)
    current = start_index
    while unvisited:
        # Lowest index wins ties so the seed is reproducible.
        nxt = min(unvisited, key=lambda node: (graph[current][node]["weight"], node))
        tour.append(nxt)
        unvisited.remove(nxt)
        current = nxt
    return tour
