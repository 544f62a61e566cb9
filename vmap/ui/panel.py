# vmap/ui/panel.py
"""
Embeddable map panel: wires MapStore, MapInputController, MapRenderer,
MapControls and PerfOverlay together.

Host usage:
    panel = VirtualMapPanel(regions, pois, paths, on_poi_click=open_detail)
    for ev in pygame.event.get():
        panel.handle_event(ev)
    panel.tick()
    panel.draw(screen)

or simply `panel.run()` for a standalone window.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional, Tuple

import pygame

import vmap.utils.settings as settings
from vmap.core.geometry import Vec2
from vmap.core.map_state import MapStore
from vmap.core.types import MapConfig, RenderBudget
from vmap.ui.controls import MapControls
from vmap.ui.input_controller import MapInputController
from vmap.ui.perf_overlay import PerfOverlay
from vmap.ui.renderer import MapRenderer

log = logging.getLogger(__name__)


class VirtualMapPanel:
    """Owns one map instance; discarded with its host."""

    def __init__(self, regions: Iterable = (), pois: Iterable = (), paths: Iterable = (), *,
                 on_poi_click: Optional[Callable[[str], None]] = None,
                 on_map_click: Optional[Callable[[Vec2], None]] = None,
                 config: Optional[MapConfig] = None,
                 budget: Optional[RenderBudget] = None,
                 size: Tuple[int, int] = (settings.DEFAULT_WIDTH, settings.DEFAULT_HEIGHT),
                 pixel_ratio: float = 1.0,
                 now_fn: Optional[Callable[[], float]] = None) -> None:
        self._now = now_fn or (lambda: time.perf_counter() * 1000.0)
        self.store = MapStore(config, width=size[0], height=size[1], now_fn=self._now)
        self.store.set_initial_data(regions, pois, paths)
        self.controller = MapInputController(self.store, on_poi_click, on_map_click, now_fn=self._now)
        self.renderer = MapRenderer(self.store, budget, pixel_ratio=pixel_ratio)
        self.controls = MapControls(self.store)
        self.perf_overlay = PerfOverlay()
        self.running = False

    # ------------------------------------------------------------------
    # Sizing / lifecycle
    # ------------------------------------------------------------------
    def resize(self, width: int, height: int, pixel_ratio: Optional[float] = None) -> None:
        self.renderer.resize(width, height, pixel_ratio)
        st = self.store.state
        self.controls.layout(st.width, st.height)

    def close(self) -> None:
        self.controller.detach()
        self.renderer.close()
        self.running = False

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def handle_event(self, event: pygame.event.Event) -> bool:
        """Entry point; return True if the event was consumed."""
        etype = event.type
        if etype == pygame.QUIT:
            self.running = False
            return True
        if etype == pygame.VIDEORESIZE:
            self.resize(event.w, event.h)
            return True
        if etype == getattr(pygame, "WINDOWSIZECHANGED", None):
            self.resize(event.x, event.y)
            return True
        if etype == pygame.KEYDOWN:
            return self._handle_key(event)
        # Presses on the overlay never reach the map; releases always do so
        # an in-progress drag can finish over the buttons.
        if etype == pygame.MOUSEBUTTONDOWN and not getattr(event, "touch", False):
            if self.controls.handle_event(event):
                return True
        return self.controller.handle_event(event)

    def _handle_key(self, event: pygame.event.Event) -> bool:
        key = event.key
        if key == pygame.K_F3:
            self.perf_overlay.toggle()
            return True
        if key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.store.zoom_in()
            return True
        if key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self.store.zoom_out()
            return True
        if key == pygame.K_t:
            self.store.cycle_theme()
            return True
        if key == pygame.K_HOME:
            self.store.reset_view()
            return True
        if key == pygame.K_ESCAPE:
            self.running = False
            return True
        return False

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------
    def tick(self, now: Optional[float] = None) -> bool:
        """Advance tweens and hover debounce, then give the renderer its tick."""
        now = self._now() if now is None else now
        self.store.tick(now)
        self.controller.update(now)
        return self.renderer.frame(now)

    def draw(self, target: pygame.Surface) -> None:
        src = self.renderer.surface
        size = (self.store.state.width, self.store.state.height)
        if src.get_size() != size:
            target.blit(pygame.transform.smoothscale(src, size), (0, 0))
        else:
            target.blit(src, (0, 0))
        self.controls.draw(target)
        self.perf_overlay.draw(target, self.renderer.stats)

    def run(self, screen: Optional[pygame.Surface] = None, *, max_frames: Optional[int] = None,
            fps: int = settings.FPS) -> int:
        """
        Standalone loop. Returns the number of display frames shown.
        `max_frames` bounds the loop for headless smoke runs.
        """
        if screen is None:
            screen = pygame.display.get_surface()
        if screen is None:
            raise RuntimeError("No display surface; call init_pygame_display() first")
        if screen.get_size() != (self.store.state.width, self.store.state.height):
            self.resize(*screen.get_size())

        clock = pygame.time.Clock()
        self.running = True
        frames = 0
        log.info("Map loop started (%d POIs)", len(self.store.state.pois))
        while self.running:
            clock.tick(fps)
            for ev in pygame.event.get():
                self.handle_event(ev)
            self.tick()
            self.draw(screen)
            pygame.display.flip()
            frames += 1
            if max_frames is not None and frames >= max_frames:
                break
        self.running = False
        return frames
