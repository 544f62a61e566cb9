# tests/test_controls_panel.py
"""
Controls overlay and the composed VirtualMapPanel.
"""
from __future__ import annotations

import unittest

import pygame

from tests.util_asserts import FakeClock, square
from vmap.core.map_state import MapStore
from vmap.core.types import POI, MapConfig, Region, RenderBudget
from vmap.demo import _parse_args, build_demo_data
from vmap.ui.controls import MapControls, scale_label
from vmap.ui.panel import VirtualMapPanel
from vmap.ui.perf_overlay import PerfOverlay
from vmap.ui.renderer import PerformanceStats

Vec2 = pygame.math.Vector2


def _click(name: str, controls: MapControls) -> bool:
    return controls.handle_click(controls.button(name).rect.center)


class TestControls(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.store = MapStore(width=800, height=600, now_fn=self.clock)
        self.controls = MapControls(self.store)

    def test_layout_top_right(self) -> None:
        r = self.controls.button("zoom_in").rect
        self.assertEqual(r.topleft, (800 - 16 - 40, 16))
        self.assertLess(r.bottom, self.controls.button("zoom_out").rect.top)
        self.controls.layout(1024, 768)
        self.assertEqual(self.controls.button("zoom_in").rect.right, 1024 - 16)

    def test_zoom_in_animates_to_next_level(self) -> None:
        self.assertTrue(_click("zoom_in", self.controls))
        self.assertEqual(self.store.state.target_zoom, 5)
        self.store.tick(1000)
        self.assertEqual(self.store.zoom, 5)

    def test_zoom_buttons_disable_at_bounds(self) -> None:
        self.store.update_zoom(10)
        self.assertFalse(self.controls.is_enabled("zoom_in"))
        self.assertTrue(self.controls.is_enabled("zoom_out"))
        # disabled buttons still swallow the click
        self.assertTrue(_click("zoom_in", self.controls))
        self.assertEqual(self.store.state.target_zoom, 10)
        self.store.update_zoom(3)
        self.assertFalse(self.controls.is_enabled("zoom_out"))

    def test_zoom_buttons_follow_reconfigured_bounds(self) -> None:
        self.store.update_zoom(10)
        self.assertFalse(self.controls.is_enabled("zoom_in"))
        self.store.configure(MapConfig(max_zoom=14))
        self.assertTrue(self.controls.is_enabled("zoom_in"))
        self.store.configure(MapConfig(min_zoom=1, max_zoom=14))
        self.store.update_zoom(3)
        self.assertTrue(self.controls.is_enabled("zoom_out"))

    def test_theme_cycles(self) -> None:
        first = self.store.theme.name
        _click("theme", self.controls)
        self.assertNotEqual(self.store.theme.name, first)
        self.assertEqual(self.controls.labels["theme"], self.store.theme.name)

    def test_reset_returns_to_initial_center(self) -> None:
        self.store.update_center((10, 20))
        _click("reset", self.controls)
        self.assertEqual(self.store.center, Vec2(500, 500))
        self.assertEqual(self.store.state.target_center, Vec2(500, 500))

    def test_miss_is_not_consumed(self) -> None:
        self.assertFalse(self.controls.handle_click((400, 300)))
        self.assertFalse(self.controls.hit((400, 300)))

    def test_hidden_controls_ignore_clicks(self) -> None:
        self.controls.visible = False
        self.assertFalse(_click("zoom_in", self.controls))
        self.assertEqual(self.store.state.target_zoom, 4)

    def test_draw_and_labels(self) -> None:
        surf = pygame.Surface((800, 600))
        self.controls.draw(surf)
        self.assertEqual(self.controls.labels["zoom"], "4.0x")


def test_scale_label() -> None:
    assert scale_label(100) == "18.0 km"
    assert scale_label(50) == "9.0 km"


def test_perf_overlay_lines() -> None:
    overlay = PerfOverlay()
    stats = PerformanceStats(fps=59.9, frame_time_ms=3.2, visible_pois=10, total_pois=40)
    lines = overlay.lines(stats)
    assert lines[0].startswith("FPS:")
    assert "10/40" in lines[1]
    surf = pygame.Surface((400, 200))
    overlay.draw(surf, stats)  # disabled: no-op
    overlay.toggle()
    overlay.draw(surf, stats)
    assert overlay.enabled


def _panel(**kw):
    clock = FakeClock()
    now_fn = kw.pop("now_fn", clock)
    clicks = []
    panel = VirtualMapPanel(
        [Region("r", "Zone", square(450, 450, 100))],
        [POI("a", "Alpha", (500, 500), "food"), {"id": "bad"}],
        [],
        on_poi_click=clicks.append,
        now_fn=now_fn,
        **kw,
    )
    return panel, clicks, clock


class TestPanel(unittest.TestCase):
    def test_initial_data_skips_invalid(self) -> None:
        panel, _, _ = _panel()
        self.assertEqual(list(panel.store.state.pois), ["a"])
        self.assertEqual(list(panel.store.state.regions), ["r"])

    def test_poi_click_reaches_host(self) -> None:
        panel, clicks, _ = _panel()
        panel.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(400, 300)))
        panel.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, button=1, pos=(400, 300)))
        self.assertEqual(clicks, ["a"])

    def test_control_press_does_not_reach_map(self) -> None:
        panel, clicks, _ = _panel()
        pos = panel.controls.button("zoom_in").rect.center
        self.assertTrue(panel.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=pos)))
        self.assertFalse(panel.store.state.is_dragging)
        self.assertEqual(panel.store.state.target_zoom, 5)

    def test_tick_advances_tweens_and_renders(self) -> None:
        panel, _, clock = _panel()
        panel.store.set_zoom(6)
        self.assertTrue(panel.tick(0))
        clock.advance(1000)
        panel.tick()
        self.assertEqual(panel.store.zoom, 6)
        self.assertEqual(panel.renderer.drawn_region_ids, ["r"])

    def test_tick_flushes_hover(self) -> None:
        panel, _, _ = _panel()
        panel.handle_event(pygame.event.Event(pygame.MOUSEMOTION, pos=(400, 300), rel=(0, 0), buttons=(0, 0, 0)))
        panel.tick(100)
        self.assertEqual(panel.store.state.hovered_poi_id, "a")

    def test_keys(self) -> None:
        panel, _, _ = _panel()
        key = lambda k: pygame.event.Event(pygame.KEYDOWN, key=k, mod=0)  # noqa: E731
        self.assertTrue(panel.handle_event(key(pygame.K_F3)))
        self.assertTrue(panel.perf_overlay.enabled)
        panel.handle_event(key(pygame.K_EQUALS))
        self.assertEqual(panel.store.state.target_zoom, 5)
        panel.handle_event(key(pygame.K_MINUS))
        self.assertEqual(panel.store.state.target_zoom, 4)
        first = panel.store.theme.name
        panel.handle_event(key(pygame.K_t))
        self.assertNotEqual(panel.store.theme.name, first)
        self.assertFalse(panel.handle_event(key(pygame.K_q)))
        panel.running = True
        panel.handle_event(key(pygame.K_ESCAPE))
        self.assertFalse(panel.running)

    def test_quit_and_resize_events(self) -> None:
        panel, _, _ = _panel()
        panel.running = True
        panel.handle_event(pygame.event.Event(pygame.VIDEORESIZE, w=1024, h=768, size=(1024, 768)))
        self.assertEqual((panel.store.state.width, panel.store.state.height), (1024, 768))
        self.assertEqual(panel.controls.button("zoom_in").rect.right, 1024 - 16)
        panel.handle_event(pygame.event.Event(pygame.QUIT))
        self.assertFalse(panel.running)

    def test_draw_scales_high_density_surface(self) -> None:
        panel, _, _ = _panel(pixel_ratio=2.0)
        self.assertEqual(panel.renderer.surface.get_size(), (1600, 1200))
        panel.tick(0)
        screen = pygame.Surface((800, 600))
        panel.draw(screen)
        self.assertNotEqual(screen.get_at((400, 300)), pygame.Color(0, 0, 0))

    def test_run_bounded_frames(self) -> None:
        panel, _, _ = _panel(budget=RenderBudget.mobile(), now_fn=None)
        screen = pygame.Surface((800, 600))
        self.assertEqual(panel.run(screen, max_frames=3), 3)
        self.assertFalse(panel.running)

    def test_close_detaches_everything(self) -> None:
        panel, clicks, _ = _panel()
        panel.close()
        self.assertFalse(panel.controller.attached)
        self.assertFalse(panel.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(400, 300))))
        self.assertEqual(clicks, [])


def test_demo_data_is_valid() -> None:
    regions, pois, paths = build_demo_data(50, seed=7)
    store = MapStore(now_fn=FakeClock())
    assert store.set_initial_data(regions, pois, paths) == (4, 50, len(paths))
    assert len(paths) <= 1


def test_demo_args() -> None:
    args = _parse_args(["--pois", "10", "--budget", "low-end", "--headless", "--frames", "5"])
    assert args.pois == 10 and args.frames == 5 and args.headless
    assert RenderBudget.from_name(args.budget) == RenderBudget.low_end()
