# vmap/core/tween.py
"""
Time-driven interpolation advanced by the host's frame tick.

A Tween is sampled with an explicit timestamp; it never schedules itself.
Works for floats (zoom) and pygame.Vector2 (center).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

import pygame

Easing = Callable[[float], float]
T = TypeVar("T", float, pygame.Vector2)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def ease_out_cubic(t: float) -> float:
    t = _clamp(t, 0.0, 1.0)
    return 1.0 - (1.0 - t) ** 3


def linear(t: float) -> float:
    return _clamp(t, 0.0, 1.0)


def scaled_duration(amount: float, ms_per_unit: float, lo: float, hi: float) -> float:
    """Duration proportional to travel, clamped to [lo, hi] milliseconds."""
    return _clamp(abs(amount) * ms_per_unit, lo, hi)


@dataclass
class Tween(Generic[T]):
    start: T
    end: T
    start_time: float
    duration: float
    easing: Easing = ease_out_cubic

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return _clamp((now - self.start_time) / self.duration, 0.0, 1.0)

    def value_at(self, now: float) -> Union[float, pygame.Vector2]:
        t = self.progress(now)
        is_vec = isinstance(self.start, pygame.Vector2)
        if t >= 1.0:
            return pygame.Vector2(self.end) if is_vec else float(self.end)
        k = self.easing(t)
        if is_vec:
            return self.start.lerp(self.end, _clamp(k, 0.0, 1.0))
        return self.start + (self.end - self.start) * k

    def finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0
