# vmap/core/geometry.py
"""
World-space rectangles and small vector helpers shared by the store,
renderer and router. pygame.Rect is integer-only, so world rectangles are
kept as float dataclasses here.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import pygame

Vec2 = pygame.math.Vector2


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class Viewport:
    """World-space rectangle currently visible (top-left origin)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def expanded(self, margin: float) -> "Viewport":
        return Viewport(self.x - margin, self.y - margin,
                        self.width + 2 * margin, self.height + 2 * margin)

    def intersects(self, box: BoundingBox) -> bool:
        """Edges touching count as intersecting."""
        return not (box.max_x < self.x or box.min_x > self.right
                    or box.max_y < self.y or box.min_y > self.bottom)

    def contains(self, point: Vec2, margin: float = 0.0) -> bool:
        return (self.x - margin <= point.x <= self.right + margin
                and self.y - margin <= point.y <= self.bottom + margin)


def polygon_bounds(points: Iterable[Vec2]) -> Optional[BoundingBox]:
    """Axis-aligned bounds of a point list; None when the list is empty."""
    it = iter(points)
    try:
        first = next(it)
    except StopIteration:
        return None
    min_x = max_x = first.x
    min_y = max_y = first.y
    for p in it:
        if p.x < min_x:
            min_x = p.x
        elif p.x > max_x:
            max_x = p.x
        if p.y < min_y:
            min_y = p.y
        elif p.y > max_y:
            max_y = p.y
    return BoundingBox(min_x, min_y, max_x, max_y)


def vertex_centroid(points: Sequence[Vec2]) -> Vec2:
    """Mean of the vertices (label anchor, not the area centroid)."""
    n = len(points)
    if n == 0:
        return Vec2(0.0, 0.0)
    sx = sum(p.x for p in points)
    sy = sum(p.y for p in points)
    return Vec2(sx / n, sy / n)


def is_finite_vec(v: Vec2) -> bool:
    return math.isfinite(v.x) and math.isfinite(v.y)


def turn_angle_degrees(a: Vec2, b: Vec2, c: Vec2) -> float:
    """
    Turning angle at `b` between segments a->b and b->c, in [0, 180].
    Degenerate (zero-length) segments count as no turn.
    """
    abx, aby = b.x - a.x, b.y - a.y
    bcx, bcy = c.x - b.x, c.y - b.y
    ab_len = math.hypot(abx, aby)
    bc_len = math.hypot(bcx, bcy)
    if ab_len == 0.0 or bc_len == 0.0:
        return 0.0
    cos_t = (abx * bcx + aby * bcy) / (ab_len * bc_len)
    cos_t = max(-1.0, min(1.0, cos_t))
    return math.degrees(math.acos(cos_t))
