# tests/util_asserts.py
"""
Small assertion helpers for tests.
"""
from __future__ import annotations

import unittest
from typing import Optional

import pygame


def assert_vec2_almost_equal(
    tc: unittest.TestCase,
    a: pygame.math.Vector2,
    b: pygame.math.Vector2,
    places: int = 4,
    msg: Optional[str] = None,
) -> None:
    """Assert two pygame Vector2 are almost equal component-wise."""
    tc.assertIsInstance(a, pygame.math.Vector2, msg or "Left value is not a pygame.math.Vector2")
    tc.assertIsInstance(b, pygame.math.Vector2, msg or "Right value is not a pygame.math.Vector2")
    tc.assertAlmostEqual(a.x, b.x, places=places, msg=msg)
    tc.assertAlmostEqual(a.y, b.y, places=places, msg=msg)


def square(x0: float, y0: float, size: float):
    return [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)]


class FakeClock:
    """Manual millisecond clock for tween/debounce tests."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now
