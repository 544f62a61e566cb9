# vmap/ui/input_controller.py
"""
Pointer, wheel and touch input -> MapStore commands and host callbacks.

- Click vs drag: a press that travels more than CLICK_SLOP_PX becomes a drag;
  otherwise the release is hit-tested and fires exactly one click callback.
- Hover: debounced hit-test that only updates the store's hovered POI. The
  debounce is flushed from `update(now)`, called once per frame.
- Wheel zooms through the animated setter, pinch through the immediate one.
- After `detach()` every handler is a no-op.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple

import pygame

import vmap.utils.settings as settings
from vmap.core.geometry import Vec2
from vmap.core.map_state import MapStore
from vmap.core.types import POI

log = logging.getLogger(__name__)

__all__ = ["MapInputController", "interaction_radius", "pick_poi"]

PoiClickHandler = Callable[[str], None]
MapClickHandler = Callable[[Vec2], None]
Point = Tuple[float, float]


def interaction_radius(zoom: float) -> float:
    return min(settings.HIT_RADIUS_MAX,
               settings.HIT_RADIUS_BASE + (zoom - 1.0) * settings.HIT_RADIUS_PER_ZOOM)


def pick_poi(store: MapStore, screen_pos: Point) -> Optional[POI]:
    """
    First POI in collection order whose projected position lies within the
    interaction radius of `screen_pos`. POIs outside the viewport (padded by
    the radius) are skipped before projecting.
    The radius is in screen pixels and converted to world units for the cull.
    """
    radius = interaction_radius(store.zoom)
    r2 = radius * radius
    margin = radius / store.scale
    sx, sy = screen_pos
    view = store.get_viewport()
    for poi in store.state.pois.values():
        if not view.contains(poi.coordinate, margin):
            continue
        p = store.world_to_screen(poi.coordinate)
        dx = sx - p.x
        dy = sy - p.y
        if dx * dx + dy * dy <= r2:
            return poi
    return None


def wheel_step(zoom: float) -> float:
    """Zoom change per wheel notch; smaller at high zoom."""
    return settings.WHEEL_STEP * (1.0 - (zoom - 1.0) * settings.WHEEL_STEP_FALLOFF)


class MapInputController:
    """Owns gesture state; the store owns everything else."""

    def __init__(self, store: MapStore, on_poi_click: Optional[PoiClickHandler] = None,
                 on_map_click: Optional[MapClickHandler] = None, *,
                 now_fn: Optional[Callable[[], float]] = None) -> None:
        self.store: Optional[MapStore] = store
        self.on_poi_click = on_poi_click
        self.on_map_click = on_map_click
        self._now = now_fn or (lambda: time.perf_counter() * 1000.0)

        self._pressed = False
        self._press_pos: Optional[Vec2] = None
        self._potential_click = False

        self._hover_pos: Optional[Point] = None
        self._hover_due: float = 0.0

        self._fingers: Dict[int, Vec2] = {}
        self._pinch_distance: Optional[float] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def attached(self) -> bool:
        return self.store is not None

    def detach(self) -> None:
        self.store = None
        self.on_poi_click = None
        self.on_map_click = None
        self._pressed = False
        self._hover_pos = None
        self._fingers.clear()
        self._pinch_distance = None

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------
    def press(self, pos: Point) -> bool:
        if self.store is None:
            return False
        self._pressed = True
        self._press_pos = Vec2(pos)
        self._potential_click = True
        self._hover_pos = None
        self.store.start_drag(pos)
        return True

    def move(self, pos: Point, now: Optional[float] = None) -> bool:
        store = self.store
        if store is None:
            return False
        if self._pressed:
            if self._potential_click and self._press_pos is not None:
                if self._press_pos.distance_to(pos) > settings.CLICK_SLOP_PX:
                    self._potential_click = False
            if not self._potential_click:
                store.drag(pos)
            return True
        if not store.state.is_dragging:
            now = self._now() if now is None else now
            self._hover_pos = (float(pos[0]), float(pos[1]))
            self._hover_due = now + settings.HOVER_DEBOUNCE_MS
        return True

    def release(self, pos: Point) -> bool:
        store = self.store
        if store is None or not self._pressed:
            return False
        was_click = self._potential_click
        self._pressed = False
        self._potential_click = False
        self._press_pos = None
        store.end_drag()
        if was_click:
            self._click(pos)
        return True

    def pointer_leave(self) -> bool:
        store = self.store
        if store is None:
            return False
        self._pressed = False
        self._potential_click = False
        self._hover_pos = None
        store.end_drag()
        store.set_hovered_poi(None)
        return True

    def context_menu(self) -> bool:
        """Suppressed: consumed without side effects."""
        return self.store is not None

    def wheel(self, notches: float) -> bool:
        """Positive `notches` zooms in."""
        store = self.store
        if store is None or not notches:
            return False
        step = wheel_step(store.zoom)
        direction = 1.0 if notches > 0 else -1.0
        store.set_zoom(store.state.target_zoom + direction * step)
        return True

    def update(self, now: Optional[float] = None) -> None:
        """Flush the pending hover hit-test once its debounce has elapsed."""
        store = self.store
        if store is None or self._hover_pos is None:
            return
        now = self._now() if now is None else now
        if now < self._hover_due:
            return
        pos = self._hover_pos
        self._hover_pos = None
        if store.state.is_dragging:
            return
        poi = pick_poi(store, pos)
        store.set_hovered_poi(poi.id if poi is not None else None)

    def _click(self, pos: Point) -> None:
        store = self.store
        if store is None:
            return
        poi = pick_poi(store, pos)
        try:
            if poi is not None:
                if self.on_poi_click is not None:
                    self.on_poi_click(poi.id)
            elif self.on_map_click is not None:
                self.on_map_click(store.screen_to_world(pos))
        except Exception:
            log.exception("Click callback failed")

    # ------------------------------------------------------------------
    # Touch
    # ------------------------------------------------------------------
    def touch_down(self, finger_id: int, pos: Point) -> bool:
        if self.store is None:
            return False
        self._fingers[finger_id] = Vec2(pos)
        if len(self._fingers) == 1:
            return self.press(pos)
        # second finger turns the gesture into a pinch
        self._pressed = False
        self._potential_click = False
        self.store.end_drag()
        self._pinch_distance = self._finger_spread()
        return True

    def touch_move(self, finger_id: int, pos: Point) -> bool:
        store = self.store
        if store is None or finger_id not in self._fingers:
            return False
        self._fingers[finger_id] = Vec2(pos)
        if len(self._fingers) >= 2:
            spread = self._finger_spread()
            if self._pinch_distance and spread:
                ratio = spread / self._pinch_distance
                store.update_zoom(store.zoom + (ratio - 1.0) * settings.PINCH_GAIN)
            self._pinch_distance = spread
            return True
        return self.move(pos)

    def touch_up(self, finger_id: int, pos: Point) -> bool:
        if self.store is None or self._fingers.pop(finger_id, None) is None:
            return False
        if len(self._fingers) < 2:
            self._pinch_distance = None
        if not self._fingers:
            if self._pressed:
                return self.release(pos)
            self.store.end_drag()
        return True

    def _finger_spread(self) -> Optional[float]:
        pts = list(self._fingers.values())[:2]
        if len(pts) < 2:
            return None
        return pts[0].distance_to(pts[1])

    # ------------------------------------------------------------------
    # pygame event mapping
    # ------------------------------------------------------------------
    def handle_event(self, event: pygame.event.Event) -> bool:
        """Entry point; return True if the event was consumed."""
        if self.store is None:
            return False
        etype = event.type

        # SDL mirrors touches as mouse events; the FINGER* events handle them.
        if etype in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION):
            if getattr(event, "touch", False):
                return False

        if etype == pygame.MOUSEBUTTONDOWN:
            if event.button == 1:
                return self.press(event.pos)
            if event.button == 3:
                return self.context_menu()
            return False
        if etype == pygame.MOUSEBUTTONUP:
            if event.button == 1:
                return self.release(event.pos)
            return event.button == 3
        if etype == pygame.MOUSEMOTION:
            return self.move(event.pos)
        if etype == pygame.MOUSEWHEEL:
            return self.wheel(getattr(event, "precise_y", event.y) or event.y)
        if etype in (pygame.FINGERDOWN, pygame.FINGERMOTION, pygame.FINGERUP):
            pos = self._finger_pos(event)
            if etype == pygame.FINGERDOWN:
                return self.touch_down(event.finger_id, pos)
            if etype == pygame.FINGERMOTION:
                return self.touch_move(event.finger_id, pos)
            return self.touch_up(event.finger_id, pos)
        if etype == getattr(pygame, "WINDOWLEAVE", None):
            return self.pointer_leave()
        return False

    def _finger_pos(self, event: pygame.event.Event) -> Point:
        # Finger coordinates are normalized to [0, 1] over the window.
        st = self.store.state
        return (float(event.x) * st.width, float(event.y) * st.height)

    @property
    def is_pinching(self) -> bool:
        return self._pinch_distance is not None and len(self._fingers) >= 2

    @property
    def finger_count(self) -> int:
        return len(self._fingers)
