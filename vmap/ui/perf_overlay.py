# vmap/ui/perf_overlay.py
from __future__ import annotations

from typing import List, Optional, Tuple

try:
    import psutil  # optional, for memory stats
except Exception:
    psutil = None

import pygame

import vmap.utils.settings as settings
from vmap.ui.renderer import PerformanceStats, make_font


class PerfOverlay:
    """
    Opt-in overlay over the map renderer's PerformanceStats:
      - FPS and frame time
      - visible / total POIs
      - process memory (if psutil installed)
    Toggled with F3 by the panel.
    """

    def __init__(self, *, font_size: int = settings.DEBUG_PANEL_FONT_SIZE) -> None:
        self.enabled: bool = False
        self._font_size = font_size
        self._font: Optional[pygame.font.Font] = None

    def toggle(self) -> None:
        self.enabled = not self.enabled

    @staticmethod
    def _proc_mem() -> Optional[str]:
        if not psutil:
            return None
        try:
            rss = psutil.Process().memory_info().rss / (1024 * 1024)
        except (psutil.Error, OSError):
            return None
        return f"{rss:.1f} MiB"

    def lines(self, stats: PerformanceStats) -> List[str]:
        out = [
            f"FPS: {stats.fps:5.1f}   Frame: {stats.frame_time_ms:5.1f} ms",
            f"POIs: {stats.visible_pois}/{stats.total_pois}   regions: {stats.regions}   paths: {stats.paths}",
        ]
        mem = self._proc_mem()
        if mem:
            out.append(f"mem: {mem}")
        return out

    def draw(self, surface: pygame.Surface, stats: PerformanceStats, *, pos: Tuple[int, int] = (10, 10)) -> None:
        if not self.enabled:
            return
        if self._font is None:
            self._font = make_font(self._font_size, name="Consolas")
        text_surfs = [self._font.render(line, True, settings.DEBUG_PANEL_FONT_COLOR) for line in self.lines(stats)]
        w = max(ts.get_width() for ts in text_surfs) + 16
        line_h = self._font.get_linesize()
        h = len(text_surfs) * line_h + 12
        bg = pygame.Surface((w, h), pygame.SRCALPHA)
        bg.fill((*settings.DEBUG_PANEL_BG_COLOR, 170))
        surface.blit(bg, pos)
        for i, ts in enumerate(text_surfs):
            surface.blit(ts, (pos[0] + 8, pos[1] + 6 + i * line_h))
