# vmap/core/pathfinding.py
"""
Route finding over an implicit uniform grid anchored at the start point.

There is no obstacle layer: the grid only bounds branching. Nodes are kept
as integer offsets (i, j) from `start` so keys are exact; world positions
are start + (i, j) * grid_step.
"""
from __future__ import annotations

import heapq
import itertools
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from vmap.core.geometry import Vec2, turn_angle_degrees
from vmap.core.types import POI

log = logging.getLogger(__name__)

Node = Tuple[int, int]

DEFAULT_GRID_STEP = 10.0
DEFAULT_MAX_ITERATIONS = 1000
DEFAULT_ANGLE_TOLERANCE = 5.0
DEFAULT_SMOOTH_FACTOR = 0.5
DEFAULT_SMOOTH_PASSES = 5

_DIRECTIONS: Tuple[Node, ...] = (
    (0, -1), (1, 0), (0, 1), (-1, 0),
    (1, -1), (1, 1), (-1, 1), (-1, -1),
)


class AStarState:
    """
    Open/closed bookkeeping for one search. The open set is a heap, so among
    nodes with equal f the expansion order can differ from a linear scan.
    """
    # pylint: disable=too-few-public-methods
    def __init__(self, start_node: Node, start_f: float):
        self._seq = itertools.count()
        self.priority_queue: List[Tuple[float, int, Node]] = [(start_f, next(self._seq), start_node)]
        self.came_from: Dict[Node, Optional[Node]] = {start_node: None}
        self.g_cost: Dict[Node, float] = {start_node: 0.0}
        self.closed: set[Node] = set()

    def push(self, f_cost: float, node: Node) -> None:
        heapq.heappush(self.priority_queue, (f_cost, next(self._seq), node))


def _reconstruct(came_from: Dict[Node, Optional[Node]], current: Node) -> List[Node]:
    path: List[Node] = [current]
    while True:
        prev = came_from.get(current)
        if prev is None:
            break
        path.append(prev)
        current = prev
    path.reverse()
    return path


def find_path(start: Vec2, end: Vec2, grid_step: float = DEFAULT_GRID_STEP,
              max_iterations: int = DEFAULT_MAX_ITERATIONS) -> List[Vec2]:
    """
    8-directional A*. Edge cost and heuristic are both Euclidean.

    Succeeds when an expanded node lies strictly closer than one grid step
    to `end`; the returned path starts at `start` and ends at that node.
    Returns [] once `max_iterations` expansions are spent.
    """
    start = Vec2(start)
    end = Vec2(end)
    if not grid_step > 0:
        raise ValueError(f"grid_step must be positive, got {grid_step!r}")

    def world(node: Node) -> Vec2:
        return Vec2(start.x + node[0] * grid_step, start.y + node[1] * grid_step)

    start_node: Node = (0, 0)
    state = AStarState(start_node, start.distance_to(end))

    iterations = 0
    while state.priority_queue and iterations < max_iterations:
        _, _, current = heapq.heappop(state.priority_queue)
        if current in state.closed:
            continue
        iterations += 1

        pos = world(current)
        if pos.distance_to(end) < grid_step:
            return [world(n) for n in _reconstruct(state.came_from, current)]
        state.closed.add(current)

        g_here = state.g_cost[current]
        for di, dj in _DIRECTIONS:
            nxt = (current[0] + di, current[1] + dj)
            if nxt in state.closed:
                continue
            tentative_g = g_here + math.hypot(di, dj) * grid_step
            if tentative_g < state.g_cost.get(nxt, math.inf):
                state.g_cost[nxt] = tentative_g
                state.came_from[nxt] = current
                state.push(tentative_g + world(nxt).distance_to(end), nxt)

    log.debug("No path from %s to %s within %d iterations", start, end, max_iterations)
    return []


def path_between_pois(a: POI, b: POI, grid_step: float = DEFAULT_GRID_STEP) -> List[Vec2]:
    return find_path(a.coordinate, b.coordinate, grid_step)


def simplify_path(path: Sequence[Vec2], tolerance_degrees: float = DEFAULT_ANGLE_TOLERANCE) -> List[Vec2]:
    """
    Drop interior points whose turning angle, measured from the last kept
    point, is within `tolerance_degrees`. Endpoints are always kept.
    """
    if len(path) <= 2:
        return [Vec2(p) for p in path]
    kept: List[Vec2] = [Vec2(path[0])]
    for i in range(1, len(path) - 1):
        if turn_angle_degrees(kept[-1], path[i], path[i + 1]) > tolerance_degrees:
            kept.append(Vec2(path[i]))
    kept.append(Vec2(path[-1]))
    return kept


def smooth_path(path: Sequence[Vec2], factor: float = DEFAULT_SMOOTH_FACTOR,
                passes: int = DEFAULT_SMOOTH_PASSES) -> List[Vec2]:
    """Relax interior points toward their neighbors' midpoint; endpoints stay put."""
    pts = [Vec2(p) for p in path]
    if len(pts) <= 2:
        return pts
    for _ in range(passes):
        prev = [Vec2(p) for p in pts]
        for j in range(1, len(pts) - 1):
            mid = (prev[j - 1] + prev[j + 1]) * 0.5
            pts[j] = prev[j] + (mid - prev[j]) * factor
    return pts


def path_length(path: Sequence[Vec2]) -> float:
    return sum(Vec2(a).distance_to(b) for a, b in zip(path, path[1:]))
