# vmap/ui/renderer.py
"""
Frame renderer for a MapStore.

Pipeline per frame: background, grid, regions, paths, POIs (clustered below
the budget's zoom threshold, individual markers above it). Store changes
mark the renderer dirty; `frame(now)` decides whether this scheduling tick
actually draws (dirty flag, minimum interval, frame-skip factor).

Everything is drawn into a backing surface of logical size * pixel_ratio.
World/screen math stays in logical pixels; `_px` converts at the last step.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pygame

import vmap.utils.settings as settings
from vmap.core.clustering import Cluster, cluster_cell_size, cluster_pois
from vmap.core.geometry import Vec2, Viewport, vertex_centroid
from vmap.core.map_state import MapStore
from vmap.core.types import CATEGORY_COLORS, POI, Category, Path, Region, RenderBudget, Theme

log = logging.getLogger(__name__)

__all__ = ["MapRenderer", "PerformanceStats", "make_font", "grid_spacing", "icon_size", "cluster_radius"]


def make_font(size: int, *, name: str = settings.FONT_NAME, bold: bool = False) -> pygame.font.Font:
    """Create a font safely even when system fonts are limited (CI)."""
    if not pygame.font.get_init():
        pygame.font.init()
    try:
        return pygame.font.SysFont(name, size, bold=bold)
    except Exception:
        return pygame.font.Font(None, size)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def grid_spacing(zoom: float) -> float:
    """World-unit grid spacing; halves every two zoom levels."""
    return settings.GRID_BASE_SPACING * 0.5 ** math.floor(zoom / 2.0)


def icon_size(base: float, zoom: float) -> float:
    return max(base, base * (1.0 + (zoom - 1.0) * 0.2))


def cluster_radius(base: float, count: int) -> float:
    return max(base * 1.5, base + min(count * 0.8, 30.0))


def _rect(x: float, y: float, w: float, h: float) -> pygame.Rect:
    return pygame.Rect(int(x), int(y), max(1, int(w)), max(1, int(h)))


def truncate(text: str, limit: int = settings.DESCRIPTION_MAX_CHARS) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


@dataclass
class PerformanceStats:
    """Published once per STATS_INTERVAL_MS."""
    fps: float = 0.0
    frame_time_ms: float = 0.0
    visible_pois: int = 0
    total_pois: int = 0
    regions: int = 0
    paths: int = 0
    frames_rendered: int = 0


class MapRenderer:
    def __init__(self, store: MapStore, budget: Optional[RenderBudget] = None, *,
                 pixel_ratio: float = 1.0) -> None:
        self.store = store
        self.budget = budget or RenderBudget()
        self.pixel_ratio = max(0.1, float(pixel_ratio))
        self.surface = self._alloc_surface()
        self.dirty = True
        self.stats = PerformanceStats()

        # Per-frame results (inspected by overlays and tests)
        self.visible_pois: List[POI] = []
        self.clusters: List[Cluster] = []
        self.drawn_region_ids: List[str] = []
        self.drawn_path_ids: List[str] = []
        self.failed_ids: List[str] = []

        self._tick_count = 0
        self._last_frame_at: Optional[float] = None
        self._window_start: Optional[float] = None
        self._window_frames = 0
        self._window_frame_ms = 0.0

        self._fonts: Dict[Tuple[int, bool], pygame.font.Font] = {}
        self._unsubscribe = store.subscribe(self._on_store_change)

    # ------------------------------------------------------------------
    # Lifecycle / sizing
    # ------------------------------------------------------------------
    def close(self) -> None:
        self._unsubscribe()

    def _on_store_change(self, _fields: Tuple[str, ...]) -> None:
        self.dirty = True

    def request_render(self) -> None:
        self.dirty = True

    def _alloc_surface(self) -> pygame.Surface:
        st = self.store.state
        w = max(1, int(round(st.width * self.pixel_ratio)))
        h = max(1, int(round(st.height * self.pixel_ratio)))
        return pygame.Surface((w, h))

    def resize(self, width: int, height: int, pixel_ratio: Optional[float] = None) -> None:
        """Re-measure the surface; the store keeps the logical size."""
        if pixel_ratio is not None:
            self.pixel_ratio = max(0.1, float(pixel_ratio))
        self.store.set_size(width, height)
        self.surface = self._alloc_surface()
        self.dirty = True
        log.debug("Renderer resized to %dx%d @%.2fx", self.store.state.width,
                  self.store.state.height, self.pixel_ratio)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def frame(self, now: float) -> bool:
        """
        One scheduling tick at `now` (ms). Draws only on every frame_skip-th
        tick, when dirty, and no sooner than min_frame_interval_ms after the
        previous draw. Returns True if a frame was drawn.
        """
        self._tick_count += 1
        if self._tick_count % self.budget.frame_skip != 0:
            return False
        if not self.dirty:
            return False
        if self._last_frame_at is not None and now - self._last_frame_at < self.budget.min_frame_interval_ms:
            return False
        self._last_frame_at = now
        t0 = time.perf_counter()
        self.render()
        self._record_frame(now, (time.perf_counter() - t0) * 1000.0)
        return True

    def _record_frame(self, now: float, frame_ms: float) -> None:
        if self._window_start is None:
            self._window_start = now
        self._window_frames += 1
        self._window_frame_ms += frame_ms
        self.stats.frames_rendered += 1
        elapsed = now - self._window_start
        if elapsed >= settings.STATS_INTERVAL_MS:
            self.stats.fps = self._window_frames * 1000.0 / elapsed
            self.stats.frame_time_ms = self._window_frame_ms / self._window_frames
            self.stats.visible_pois = len(self.visible_pois)
            self.stats.total_pois = len(self.store.state.pois)
            self.stats.regions = len(self.store.state.regions)
            self.stats.paths = len(self.store.state.paths)
            self._window_start = now
            self._window_frames = 0
            self._window_frame_ms = 0.0

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def render(self) -> pygame.Surface:
        st = self.store.state
        theme = st.theme
        zoom = st.zoom
        view = self.store.get_viewport()
        surf = self.surface

        self.drawn_region_ids = []
        self.drawn_path_ids = []
        self.failed_ids = []

        surf.fill(theme.background)
        if zoom <= settings.GRID_MAX_ZOOM:
            self._draw_grid(surf, view, zoom, theme)

        for region in st.regions.values():
            try:
                if self._draw_region(surf, region, view, zoom, theme):
                    self.drawn_region_ids.append(region.id)
            except Exception:
                self._draw_failed("region", region.id)

        for path in st.paths.values():
            try:
                if self._draw_path(surf, path, view, zoom, theme):
                    self.drawn_path_ids.append(path.id)
            except Exception:
                self._draw_failed("path", path.id)

        self._draw_pois(surf, view, zoom, theme)
        self.dirty = False
        return surf

    def _draw_failed(self, kind: str, entity_id: str) -> None:
        self.failed_ids.append(entity_id)
        log.warning("Skipped %s %r: draw failed", kind, entity_id, exc_info=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _px(self, screen: Vec2) -> Tuple[float, float]:
        r = self.pixel_ratio
        return (_clamp(screen.x * r, settings.SAFE_COORD_MIN, settings.SAFE_COORD_MAX),
                _clamp(screen.y * r, settings.SAFE_COORD_MIN, settings.SAFE_COORD_MAX))

    def _w(self, width: float) -> int:
        return max(1, int(round(width * self.pixel_ratio)))

    def _font(self, size: int, bold: bool = False) -> pygame.font.Font:
        px = max(6, int(round(size * self.pixel_ratio)))
        key = (px, bold)
        font = self._fonts.get(key)
        if font is None:
            font = make_font(px, bold=bold)
            self._fonts[key] = font
        return font

    def _blit_label(self, surf: pygame.Surface, text: str, center: Tuple[float, float],
                    theme: Theme, *, size: int = settings.LABEL_FONT_SIZE, bold: bool = False) -> None:
        txt = self._font(size, bold).render(text, True, theme.text_color)
        pad = self._w(4)
        bg = pygame.Surface((txt.get_width() + pad * 2, txt.get_height() + pad), pygame.SRCALPHA)
        bg.fill((*theme.background[:3], 200))
        rect = bg.get_rect(center=(int(center[0]), int(center[1])))
        surf.blit(bg, rect)
        surf.blit(txt, txt.get_rect(center=rect.center))

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------
    def _draw_grid(self, surf: pygame.Surface, view: Viewport, zoom: float, theme: Theme) -> None:
        step = grid_spacing(zoom)
        width = self._w(settings.GRID_LINE_WIDTH)
        top = self._px(self.store.world_to_screen((view.x, view.y)))[1]
        bottom = self._px(self.store.world_to_screen((view.x, view.bottom)))[1]
        left = self._px(self.store.world_to_screen((view.x, view.y)))[0]
        right = self._px(self.store.world_to_screen((view.right, view.y)))[0]

        x = math.floor(view.x / step) * step
        while x <= view.right:
            sx = self._px(self.store.world_to_screen((x, view.y)))[0]
            pygame.draw.line(surf, theme.grid_color, (sx, top), (sx, bottom), width)
            x += step
        y = math.floor(view.y / step) * step
        while y <= view.bottom:
            sy = self._px(self.store.world_to_screen((view.x, y)))[1]
            pygame.draw.line(surf, theme.grid_color, (left, sy), (right, sy), width)
            y += step

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------
    def _draw_region(self, surf: pygame.Surface, region: Region, view: Viewport,
                     zoom: float, theme: Theme) -> bool:
        if region.min_zoom > zoom or len(region.coordinates) < 2:
            return False
        bounds = region.bounds()
        if bounds is None or not view.intersects(bounds):
            return False

        pts = [self._px(self.store.world_to_screen(c)) for c in region.coordinates]
        border_w = self._w(region.border_width) if region.border_width > 0 else 0

        if len(pts) == 2:
            pygame.draw.line(surf, region.border_color, pts[0], pts[1], max(1, border_w))
        else:
            self._fill_polygon_alpha(surf, pts, region.color, theme.region_fill_opacity)
            if border_w:
                pygame.draw.polygon(surf, region.border_color, pts, border_w)

        if zoom >= settings.REGION_LABEL_MIN_ZOOM and region.name:
            anchor = self._px(self.store.world_to_screen(vertex_centroid(region.coordinates)))
            self._blit_label(surf, region.name, anchor, theme, bold=True)
        return True

    @staticmethod
    def _fill_polygon_alpha(surf: pygame.Surface, pts: Sequence[Tuple[float, float]],
                            color: pygame.Color, opacity: float) -> None:
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        box = pygame.Rect(int(math.floor(min(xs))), int(math.floor(min(ys))),
                          int(math.ceil(max(xs) - min(xs))) + 1, int(math.ceil(max(ys) - min(ys))) + 1)
        clip = box.clip(surf.get_rect())
        if clip.width <= 0 or clip.height <= 0:
            return
        layer = pygame.Surface(clip.size, pygame.SRCALPHA)
        alpha = int(round(_clamp(opacity, 0.0, 1.0) * 255))
        local = [(x - clip.x, y - clip.y) for x, y in pts]
        pygame.draw.polygon(layer, (color.r, color.g, color.b, alpha), local)
        surf.blit(layer, clip.topleft)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def _draw_path(self, surf: pygame.Surface, path: Path, view: Viewport,
                   zoom: float, theme: Theme) -> bool:
        if len(path.points) < 2:
            return False
        bounds = path.bounds()
        if bounds is None or not view.intersects(bounds):
            return False
        color = path.color if path.color is not None else theme.path_color
        pts = [self._px(self.store.world_to_screen(p.coordinate)) for p in path.points]
        pygame.draw.lines(surf, color, False, pts, self._w(path.width))

        if zoom >= settings.WAYPOINT_MIN_ZOOM:
            for point, pos in zip(path.points, pts):
                if not point.is_waypoint:
                    continue
                pygame.draw.circle(surf, settings.MARKER_BORDER_COLOR, pos, self._w(path.width + 4))
                pygame.draw.circle(surf, color, pos, self._w(path.width + 2))
        return True

    # ------------------------------------------------------------------
    # POIs
    # ------------------------------------------------------------------
    def _cull_pois(self, view: Viewport) -> List[POI]:
        padded = view.expanded(settings.POI_CULL_MARGIN)
        limit = self.budget.max_visible_pois
        out: List[POI] = []
        if limit <= 0:
            return out
        for poi in self.store.state.pois.values():
            if padded.contains(poi.coordinate):
                out.append(poi)
                if len(out) >= limit:
                    break
        return out

    def _draw_pois(self, surf: pygame.Surface, view: Viewport, zoom: float, theme: Theme) -> None:
        visible = self._cull_pois(view)
        self.visible_pois = visible
        self.clusters = []

        if zoom < self.budget.clustering_zoom_threshold:
            try:
                self.clusters = cluster_pois(visible, cluster_cell_size(zoom))
            except Exception:
                log.warning("Clustering failed; drawing nothing for POIs", exc_info=True)
                return
            for cluster in self.clusters:
                try:
                    self._draw_cluster(surf, cluster, theme)
                except Exception:
                    self._draw_failed("cluster", ",".join(cluster.poi_ids[:3]))
            return

        hovered_id = self.store.state.hovered_poi_id
        hovered: Optional[POI] = None
        for poi in visible:
            if poi.id == hovered_id:
                hovered = poi
                continue
            try:
                self._draw_poi(surf, poi, zoom, theme, False)
            except Exception:
                self._draw_failed("poi", poi.id)
        # hovered marker last so it sits on top
        if hovered is not None:
            try:
                self._draw_poi(surf, hovered, zoom, theme, True)
            except Exception:
                self._draw_failed("poi", hovered.id)

    def _draw_cluster(self, surf: pygame.Surface, cluster: Cluster, theme: Theme) -> None:
        pos = self._px(self.store.world_to_screen(cluster.center))
        color = CATEGORY_COLORS[cluster.category]
        radius = self._w(cluster_radius(theme.poi_icon_size, cluster.count))
        pygame.draw.circle(surf, color, pos, radius)
        pygame.draw.circle(surf, settings.MARKER_BORDER_COLOR, pos, radius, self._w(3))
        txt = self._font(settings.LABEL_FONT_SIZE, True).render(str(cluster.count), True, (255, 255, 255))
        surf.blit(txt, txt.get_rect(center=(int(pos[0]), int(pos[1]))))

    def _draw_poi(self, surf: pygame.Surface, poi: POI, zoom: float, theme: Theme, hovered: bool) -> None:
        pos = self._px(self.store.world_to_screen(poi.coordinate))
        size = icon_size(theme.poi_icon_size, zoom)
        if hovered:
            size *= settings.HOVER_SCALE
        radius = self._w(size)
        pygame.draw.circle(surf, poi.color, pos, radius)
        pygame.draw.circle(surf, settings.MARKER_BORDER_COLOR, pos, radius, self._w(4 if hovered else 3))
        self._draw_glyph(surf, poi.category, pos, radius * 0.7, poi.color)

        if hovered or zoom >= settings.POI_LABEL_MIN_ZOOM:
            label_y = pos[1] - radius - self._w(12)
            self._blit_label(surf, poi.name, (pos[0], label_y), theme, bold=hovered)
            if hovered and poi.description:
                self._blit_label(surf, truncate(poi.description), (pos[0], pos[1] + radius + self._w(14)),
                                 theme, size=settings.SMALL_FONT_SIZE)

    @staticmethod
    def _draw_glyph(surf: pygame.Surface, category: Category, pos: Tuple[float, float],
                    r: float, accent: pygame.Color) -> None:
        """Small white category symbol inside a marker."""
        x, y = pos
        white = (255, 255, 255)
        if r < 2:
            return
        if category is Category.FOOD:
            pygame.draw.circle(surf, white, pos, r * 0.6)
            pygame.draw.rect(surf, accent, _rect(x - r * 0.2, y - r * 0.8, r * 0.4, r * 1.6))
            pygame.draw.rect(surf, accent, _rect(x - r * 0.6, y - r * 0.2, r * 1.2, r * 0.4))
        elif category is Category.RETAIL:
            pygame.draw.polygon(surf, white, [(x - r * 0.8, y - r * 0.5), (x + r * 0.8, y - r * 0.5),
                                              (x + r * 0.6, y + r * 0.8), (x - r * 0.6, y + r * 0.8)])
        elif category is Category.CRAFT:
            pygame.draw.polygon(surf, white, [(x, y - r), (x + r, y), (x, y + r), (x - r, y)])
        elif category is Category.LANDMARK:
            pygame.draw.rect(surf, white, _rect(x - r * 0.7, y - r * 0.3, r * 1.4, r * 1.1))
            pygame.draw.polygon(surf, white, [(x - r * 0.9, y - r * 0.3), (x, y - r), (x + r * 0.9, y - r * 0.3)])
        elif category is Category.CULTURE:
            pygame.draw.rect(surf, white, _rect(x - r * 0.8, y - r * 0.5, r * 1.6, r))
            pygame.draw.line(surf, accent, (x, y - r * 0.5), (x, y + r * 0.5), 1)
        else:
            pygame.draw.circle(surf, white, pos, r * 0.6)
            pygame.draw.circle(surf, accent, pos, r * 0.25)
