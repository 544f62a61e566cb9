# vmap/ui/controls.py
"""
Controls overlay: zoom in/out (disabled at the bounds), zoom readout,
theme cycle, reset view and a scale bar. Laid out in the top-right corner.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import pygame

import vmap.utils.settings as settings
from vmap.core.map_state import MapStore
from vmap.ui.renderer import make_font

log = logging.getLogger(__name__)


@dataclass
class ControlButton:
    name: str
    label: str
    rect: pygame.Rect
    action: Callable[[], None]
    enabled: Callable[[], bool] = lambda: True


def scale_label(units_per_pixel: float) -> str:
    """Scale-bar caption: SCALE_BAR_SEGMENTS pixels at 100 world units per km."""
    km_per_pixel = units_per_pixel / 100.0
    return f"{km_per_pixel * settings.SCALE_BAR_SEGMENTS:.1f} km"


class MapControls:
    def __init__(self, store: MapStore) -> None:
        self.store = store
        self.visible = True
        self._font: Optional[pygame.font.Font] = None
        self._small_font: Optional[pygame.font.Font] = None
        self.buttons: List[ControlButton] = []
        self.zoom_label_rect = pygame.Rect(0, 0, 0, 0)
        self.scale_rect = pygame.Rect(0, 0, 0, 0)
        self.layout(store.state.width, store.state.height)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def layout(self, width: int, height: int) -> None:
        size = settings.CONTROL_BUTTON_SIZE
        gap = settings.CONTROL_GAP
        x = width - settings.CONTROL_MARGIN - size
        y = settings.CONTROL_MARGIN

        def rect_at(row: int) -> pygame.Rect:
            return pygame.Rect(x, y + row * (size + gap), size, size)

        self.buttons = [
            ControlButton("zoom_in", "+", rect_at(0), self.store.zoom_in,
                          lambda: self.store.state.target_zoom < self.store.config.max_zoom),
            ControlButton("zoom_out", "-", rect_at(2), self.store.zoom_out,
                          lambda: self.store.state.target_zoom > self.store.config.min_zoom),
            ControlButton("theme", "T", rect_at(3), self._cycle_theme),
            ControlButton("reset", "R", rect_at(4), self.store.reset_view),
        ]
        # Readout sits between the zoom buttons.
        self.zoom_label_rect = rect_at(1)
        self.scale_rect = pygame.Rect(settings.CONTROL_MARGIN, height - settings.CONTROL_MARGIN - 24,
                                      settings.SCALE_BAR_SEGMENTS * 5 + 60, 24)

    def _cycle_theme(self) -> None:
        theme = self.store.cycle_theme()
        log.info("Theme switched to %s", theme.name)

    def button(self, name: str) -> ControlButton:
        for b in self.buttons:
            if b.name == name:
                return b
        raise KeyError(name)

    def is_enabled(self, name: str) -> bool:
        return bool(self.button(name).enabled())

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def handle_click(self, pos: Tuple[int, int]) -> bool:
        """Return True if `pos` hit a control (disabled buttons still consume it)."""
        if not self.visible:
            return False
        for b in self.buttons:
            if b.rect.collidepoint(pos):
                if b.enabled():
                    b.action()
                return True
        return self.zoom_label_rect.collidepoint(pos)

    def handle_event(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            return self.handle_click(event.pos)
        if event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            return self.hit(event.pos)
        return False

    def hit(self, pos: Tuple[int, int]) -> bool:
        if not self.visible:
            return False
        return any(b.rect.collidepoint(pos) for b in self.buttons) or self.zoom_label_rect.collidepoint(pos)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def _fonts(self) -> Tuple[pygame.font.Font, pygame.font.Font]:
        if self._font is None:
            self._font = make_font(settings.CONTROL_FONT_SIZE, bold=True)
            self._small_font = make_font(settings.SMALL_FONT_SIZE)
        return self._font, self._small_font

    def draw(self, surface: pygame.Surface) -> None:
        if not self.visible:
            return
        font, small = self._fonts()
        for b in self.buttons:
            enabled = b.enabled()
            pygame.draw.rect(surface, settings.CONTROL_BG_COLOR, b.rect, border_radius=6)
            pygame.draw.rect(surface, settings.CONTROL_BORDER_COLOR, b.rect, 1, border_radius=6)
            color = settings.CONTROL_TEXT_COLOR if enabled else settings.CONTROL_DISABLED_COLOR
            txt = font.render(b.label, True, color)
            surface.blit(txt, txt.get_rect(center=b.rect.center))

        zoom_txt = small.render(f"{self.store.zoom:.1f}x", True, settings.CONTROL_TEXT_COLOR)
        pygame.draw.rect(surface, settings.CONTROL_BG_COLOR, self.zoom_label_rect, border_radius=6)
        surface.blit(zoom_txt, zoom_txt.get_rect(center=self.zoom_label_rect.center))

        self._draw_scale_bar(surface, small)

    def _draw_scale_bar(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        r = self.scale_rect
        pygame.draw.rect(surface, settings.CONTROL_BG_COLOR, r, border_radius=4)
        bar_w = settings.SCALE_BAR_SEGMENTS * 5
        y = r.centery
        x0 = r.x + 6
        pygame.draw.line(surface, settings.SCALE_BAR_COLOR, (x0, y), (x0 + bar_w, y), 2)
        for i in range(settings.SCALE_BAR_SEGMENTS + 1):
            tick_h = 4 if i % 6 else 8
            x = x0 + i * 5
            pygame.draw.line(surface, settings.SCALE_BAR_COLOR, (x, y - tick_h // 2), (x, y + tick_h // 2), 1)
        txt = font.render(scale_label(self.store.units_per_pixel()), True, settings.CONTROL_TEXT_COLOR)
        surface.blit(txt, txt.get_rect(midleft=(x0 + bar_w + 6, y)))

    @property
    def labels(self) -> Dict[str, str]:
        return {
            "zoom": f"{self.store.zoom:.1f}x",
            "scale": scale_label(self.store.units_per_pixel()),
            "theme": self.store.theme.name,
        }
