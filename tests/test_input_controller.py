# tests/test_input_controller.py
"""
MapInputController: click vs drag, hit-testing, hover debounce, wheel, pinch.
"""
from __future__ import annotations

import logging
import unittest

import pygame
import pytest

from tests.util_asserts import FakeClock
from vmap.core.map_state import MapStore
from vmap.core.types import POI, MapConfig
from vmap.ui.input_controller import MapInputController, interaction_radius, pick_poi, wheel_step

Vec2 = pygame.math.Vector2


class Recorder:
    def __init__(self) -> None:
        self.poi_clicks = []
        self.map_clicks = []

    def poi(self, poi_id: str) -> None:
        self.poi_clicks.append(poi_id)

    def map(self, world) -> None:
        self.map_clicks.append(Vec2(world))


def _setup(pois=()):
    clock = FakeClock()
    store = MapStore(width=800, height=600, now_fn=clock)
    for p in pois:
        store.add_poi(p)
    rec = Recorder()
    ctl = MapInputController(store, rec.poi, rec.map, now_fn=clock)
    return store, ctl, rec, clock


class TestClickVersusDrag(unittest.TestCase):
    def test_small_movement_is_one_click(self) -> None:
        store, ctl, rec, _ = _setup()
        ctl.press((100, 100))
        ctl.move((101, 101))
        ctl.move((102, 100))
        ctl.release((102, 100))
        self.assertEqual(len(rec.map_clicks), 1)
        self.assertEqual(rec.poi_clicks, [])
        self.assertEqual(store.center, Vec2(500, 500))
        self.assertFalse(store.state.is_dragging)

    def test_map_click_reports_world_coordinates(self) -> None:
        store, ctl, rec, _ = _setup()
        ctl.press((400, 300))
        ctl.release((400, 300))
        self.assertEqual(rec.map_clicks, [Vec2(500, 500)])

    def test_large_movement_is_a_drag(self) -> None:
        store, ctl, rec, _ = _setup()
        seen = []
        store.subscribe(lambda fields: seen.extend(f for f in fields if f == "center"))
        ctl.press((100, 100))
        ctl.move((120, 100))
        ctl.release((120, 100))
        self.assertEqual(rec.map_clicks, [])
        self.assertEqual(rec.poi_clicks, [])
        self.assertGreaterEqual(len(seen), 1)
        # 20 px with 0.5 damping, content follows the pointer
        self.assertEqual(store.center, Vec2(490, 500))

    def test_drag_back_to_start_is_not_a_click(self) -> None:
        _, ctl, rec, _ = _setup()
        ctl.press((100, 100))
        ctl.move((110, 100))
        ctl.move((100, 100))
        ctl.release((100, 100))
        self.assertEqual(rec.map_clicks, [])

    def test_release_without_press_is_ignored(self) -> None:
        _, ctl, rec, _ = _setup()
        self.assertFalse(ctl.release((10, 10)))
        self.assertEqual(rec.map_clicks, [])


class TestHitTesting(unittest.TestCase):
    def test_poi_click(self) -> None:
        _, ctl, rec, _ = _setup([POI("a", "Alpha", (500, 500))])
        ctl.press((405, 302))
        ctl.release((405, 302))
        self.assertEqual(rec.poi_clicks, ["a"])
        self.assertEqual(rec.map_clicks, [])

    def test_first_match_in_collection_order_wins(self) -> None:
        store, ctl, rec, _ = _setup([POI("b", "Beta", (500.5, 500)), POI("a", "Alpha", (500, 500))])
        ctl.press((400, 300))
        ctl.release((400, 300))
        self.assertEqual(rec.poi_clicks, ["b"])
        self.assertEqual(pick_poi(store, (400, 300)).id, "b")

    def test_miss_outside_radius(self) -> None:
        store, _, _, _ = _setup([POI("a", "Alpha", (500, 500))])
        self.assertIsNone(pick_poi(store, (400 + 32, 300)))
        self.assertEqual(pick_poi(store, (400 + 30, 300)).id, "a")

    def test_offscreen_poi_within_radius_is_hit_when_zoomed_out(self) -> None:
        store = MapStore(MapConfig(min_zoom=0.5, initial_zoom=0.5), width=800, height=600,
                         now_fn=FakeClock())
        left = store.get_viewport().x
        store.add_poi(POI("edge", "Edge", (left - 30, 500)))
        projected = store.world_to_screen((left - 30, 500))
        self.assertLess(projected.x, 0)
        self.assertLess(-projected.x, interaction_radius(store.zoom))
        self.assertEqual(pick_poi(store, (0, 300)).id, "edge")

    def test_interaction_radius_grows_then_caps(self) -> None:
        self.assertEqual(interaction_radius(1), 25)
        self.assertEqual(interaction_radius(4), 31)
        self.assertEqual(interaction_radius(10), 40)


class TestHover(unittest.TestCase):
    def test_hover_is_debounced(self) -> None:
        store, ctl, _, clock = _setup([POI("a", "Alpha", (500, 500))])
        ctl.move((402, 300), now=0)
        ctl.update(29)
        self.assertIsNone(store.state.hovered_poi_id)
        ctl.update(30)
        self.assertEqual(store.state.hovered_poi_id, "a")

    def test_only_latest_position_is_tested(self) -> None:
        store, ctl, _, _ = _setup([POI("a", "Alpha", (500, 500))])
        ctl.move((402, 300), now=0)
        ctl.move((50, 50), now=20)
        ctl.update(35)
        self.assertIsNone(store.state.hovered_poi_id)
        ctl.update(50)
        self.assertIsNone(store.state.hovered_poi_id)

    def test_hover_uses_clock_when_now_omitted(self) -> None:
        store, ctl, _, clock = _setup([POI("a", "Alpha", (500, 500))])
        ctl.move((400, 300))
        ctl.update()
        self.assertIsNone(store.state.hovered_poi_id)
        clock.advance(30)
        ctl.update()
        self.assertEqual(store.state.hovered_poi_id, "a")

    def test_pointer_leave_clears_hover_and_drag(self) -> None:
        store, ctl, rec, _ = _setup([POI("a", "Alpha", (500, 500))])
        store.set_hovered_poi("a")
        ctl.press((100, 100))
        self.assertTrue(ctl.pointer_leave())
        self.assertIsNone(store.state.hovered_poi_id)
        self.assertFalse(store.state.is_dragging)
        self.assertFalse(ctl.release((100, 100)))
        self.assertEqual(rec.map_clicks, [])


class TestWheelAndPinch(unittest.TestCase):
    def test_wheel_targets_next_step(self) -> None:
        store, ctl, _, _ = _setup()
        self.assertTrue(ctl.wheel(1))
        self.assertAlmostEqual(store.state.target_zoom, 4 + wheel_step(4))
        self.assertAlmostEqual(store.state.target_zoom, 4.1275)
        self.assertEqual(store.zoom, 4)

    def test_wheel_out(self) -> None:
        store, ctl, _, _ = _setup()
        ctl.wheel(-1)
        self.assertAlmostEqual(store.state.target_zoom, 4 - 0.1275)

    def test_wheel_stays_within_bounds(self) -> None:
        store, ctl, _, _ = _setup()
        for _ in range(200):
            ctl.wheel(1)
        self.assertEqual(store.state.target_zoom, 10)
        for _ in range(200):
            ctl.wheel(-1)
        self.assertEqual(store.state.target_zoom, 3)

    def test_zero_wheel_is_not_consumed(self) -> None:
        _, ctl, _, _ = _setup()
        self.assertFalse(ctl.wheel(0))

    def test_pinch_zooms_immediately(self) -> None:
        store, ctl, rec, _ = _setup()
        ctl.touch_down(0, (300, 300))
        ctl.touch_down(1, (400, 300))
        self.assertTrue(ctl.is_pinching)
        ctl.touch_move(1, (500, 300))
        self.assertAlmostEqual(store.zoom, 4.5)
        self.assertAlmostEqual(store.state.target_zoom, 4.5)
        ctl.touch_up(1, (500, 300))
        ctl.touch_up(0, (300, 300))
        self.assertEqual(ctl.finger_count, 0)
        self.assertEqual(rec.map_clicks, [])
        self.assertFalse(store.state.is_dragging)

    def test_single_finger_tap_clicks(self) -> None:
        _, ctl, rec, _ = _setup([POI("a", "Alpha", (500, 500))])
        ctl.touch_down(7, (400, 300))
        ctl.touch_up(7, (400, 300))
        self.assertEqual(rec.poi_clicks, ["a"])


def test_detach_makes_everything_inert() -> None:
    store, ctl, rec, _ = _setup([POI("a", "Alpha", (500, 500))])
    ctl.detach()
    assert not ctl.attached
    assert not ctl.press((400, 300))
    assert not ctl.move((401, 300))
    assert not ctl.release((400, 300))
    assert not ctl.wheel(1)
    assert not ctl.touch_down(0, (1, 1))
    assert not ctl.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(1, 1)))
    ctl.update(1000)
    assert rec.poi_clicks == [] and rec.map_clicks == []
    assert store.state.target_zoom == 4


def test_callback_failure_is_logged(caplog) -> None:
    store = MapStore(width=800, height=600, now_fn=FakeClock())

    def boom(_world) -> None:
        raise RuntimeError("host failed")

    ctl = MapInputController(store, on_map_click=boom)
    with caplog.at_level(logging.ERROR, logger="vmap.ui.input_controller"):
        ctl.press((10, 10))
        assert ctl.release((10, 10))
    assert "Click callback failed" in caplog.text


class TestPygameEvents(unittest.TestCase):
    def test_mouse_sequence(self) -> None:
        _, ctl, rec, _ = _setup([POI("a", "Alpha", (500, 500))])
        self.assertTrue(ctl.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(400, 300))))
        self.assertTrue(ctl.handle_event(pygame.event.Event(pygame.MOUSEMOTION, pos=(401, 300), rel=(1, 0), buttons=(1, 0, 0))))
        self.assertTrue(ctl.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, button=1, pos=(401, 300))))
        self.assertEqual(rec.poi_clicks, ["a"])

    def test_right_click_is_consumed_without_action(self) -> None:
        store, ctl, rec, _ = _setup()
        self.assertTrue(ctl.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=3, pos=(10, 10))))
        self.assertTrue(ctl.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, button=3, pos=(10, 10))))
        self.assertFalse(store.state.is_dragging)
        self.assertEqual(rec.map_clicks, [])

    def test_touch_mirrored_mouse_events_are_skipped(self) -> None:
        store, ctl, _, _ = _setup()
        ev = pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(10, 10), touch=True)
        self.assertFalse(ctl.handle_event(ev))
        self.assertFalse(store.state.is_dragging)

    def test_mouse_wheel(self) -> None:
        store, ctl, _, _ = _setup()
        ev = pygame.event.Event(pygame.MOUSEWHEEL, x=0, y=1, precise_x=0.0, precise_y=1.0, flipped=False)
        self.assertTrue(ctl.handle_event(ev))
        self.assertAlmostEqual(store.state.target_zoom, 4.1275)

    def test_finger_events_use_normalized_coordinates(self) -> None:
        _, ctl, rec, _ = _setup([POI("a", "Alpha", (500, 500))])
        down = pygame.event.Event(pygame.FINGERDOWN, touch_id=0, finger_id=3, x=0.5, y=0.5, dx=0.0, dy=0.0)
        up = pygame.event.Event(pygame.FINGERUP, touch_id=0, finger_id=3, x=0.5, y=0.5, dx=0.0, dy=0.0)
        self.assertTrue(ctl.handle_event(down))
        self.assertEqual(ctl.finger_count, 1)
        self.assertTrue(ctl.handle_event(up))
        self.assertEqual(rec.poi_clicks, ["a"])

    def test_unrelated_event_is_not_consumed(self) -> None:
        _, ctl, _, _ = _setup()
        self.assertFalse(ctl.handle_event(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_a, mod=0)))


@pytest.mark.parametrize("zoom", [3, 5.5, 10])
def test_wheel_step_is_positive(zoom) -> None:
    assert 0 < wheel_step(zoom) <= 0.15
