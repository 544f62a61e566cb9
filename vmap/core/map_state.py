# vmap/core/map_state.py
"""
Single owner of map state: view (center/zoom with tweened transitions),
surface size, entity collections, drag/hover state and the active theme.

All mutation goes through MapStore methods. Observers register with
`subscribe(cb)` and receive the names of the fields that changed; the
renderer uses this to mark itself dirty.

Transform model (top-left screen origin):
    scale  = 2 ** (zoom - 1)
    screen = viewport_center + (world - center) * scale
    world  = center + (screen - viewport_center) / scale
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import vmap.utils.settings as settings
from vmap.core.errors import InvalidEntityError
from vmap.core.geometry import Vec2, Viewport
from vmap.core.tween import Tween, ease_out_cubic, scaled_duration
from vmap.core.types import (
    POI,
    MapConfig,
    Path,
    Region,
    Theme,
    validate_path,
    validate_poi,
    validate_region,
)
from vmap.utils.event_bus import EventBus

log = logging.getLogger(__name__)

Listener = Callable[[Tuple[str, ...]], None]
VecLike = Union[Vec2, Tuple[float, float]]

_CHANGED = "changed"


def _perf_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass
class MapState:
    center: Vec2
    target_center: Vec2
    zoom: float
    target_zoom: float
    width: int
    height: int
    theme: Theme
    # Insertion-ordered; iteration order is collection order.
    regions: Dict[str, Region] = field(default_factory=dict)
    pois: Dict[str, POI] = field(default_factory=dict)
    paths: Dict[str, Path] = field(default_factory=dict)
    is_dragging: bool = False
    drag_start: Optional[Vec2] = None
    hovered_poi_id: Optional[str] = None


class MapStore:
    """Mutation methods and coordinate math over one MapState."""

    def __init__(self, config: Optional[MapConfig] = None, *,
                 width: int = settings.DEFAULT_WIDTH, height: int = settings.DEFAULT_HEIGHT,
                 now_fn: Optional[Callable[[], float]] = None) -> None:
        self.config = config or MapConfig()
        self._now = now_fn or _perf_ms
        self._bus = EventBus()
        center = Vec2(self.config.initial_center)
        zoom = self.config.clamp_zoom(float(self.config.initial_zoom))
        self.state = MapState(
            center=Vec2(center), target_center=Vec2(center),
            zoom=zoom, target_zoom=zoom,
            width=int(width), height=int(height),
            theme=self.config.themes[0],
        )
        self._center_tween: Optional[Tween] = None
        self._zoom_tween: Optional[Tween] = None

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener(fields)`; returns an unsubscribe function."""
        def deliver(payload: Dict[str, Any]) -> None:
            try:
                listener(payload["fields"])
            except Exception:
                log.exception("Store listener %r failed", listener)

        return self._bus.on(_CHANGED, deliver)

    def _notify(self, *fields: str) -> None:
        self._bus.emit(_CHANGED, fields=tuple(fields))

    # ------------------------------------------------------------------
    # Read-only conveniences
    # ------------------------------------------------------------------
    @property
    def center(self) -> Vec2:
        return Vec2(self.state.center)

    @property
    def zoom(self) -> float:
        return self.state.zoom

    @property
    def theme(self) -> Theme:
        return self.state.theme

    @property
    def scale(self) -> float:
        return 2.0 ** (self.state.zoom - 1.0)

    @property
    def regions(self) -> List[Region]:
        return list(self.state.regions.values())

    @property
    def pois(self) -> List[POI]:
        return list(self.state.pois.values())

    @property
    def paths(self) -> List[Path]:
        return list(self.state.paths.values())

    @property
    def is_animating(self) -> bool:
        return self._center_tween is not None or self._zoom_tween is not None

    def find_poi(self, poi_id: Optional[str]) -> Optional[POI]:
        if poi_id is None:
            return None
        return self.state.pois.get(poi_id)

    # ------------------------------------------------------------------
    # Animated view changes
    # ------------------------------------------------------------------
    def set_center(self, target: VecLike) -> None:
        """Tween the center toward `target`; supersedes any in-flight center tween."""
        target = Vec2(target)
        start = Vec2(self.state.center)
        self.state.target_center = Vec2(target)
        duration = scaled_duration(start.distance_to(target), settings.CENTER_ANIM_MS_PER_UNIT,
                                   settings.CENTER_ANIM_MIN_MS, settings.CENTER_ANIM_MAX_MS)
        self._center_tween = Tween(start, target, self._now(), duration, ease_out_cubic)
        self._notify("target_center")

    def set_zoom(self, target: float) -> None:
        """Tween the zoom toward `target` (clamped); supersedes any in-flight zoom tween."""
        target = self.config.clamp_zoom(float(target))
        start = self.state.zoom
        self.state.target_zoom = target
        if target == start:
            self._zoom_tween = None
            self._notify("target_zoom")
            return
        duration = scaled_duration(target - start, settings.ZOOM_ANIM_MS_PER_LEVEL,
                                   settings.ZOOM_ANIM_MIN_MS, settings.ZOOM_ANIM_MAX_MS)
        self._zoom_tween = Tween(start, target, self._now(), duration, ease_out_cubic)
        self._notify("target_zoom")

    def zoom_in(self) -> None:
        self.set_zoom(self.state.target_zoom + 1)

    def zoom_out(self) -> None:
        self.set_zoom(self.state.target_zoom - 1)

    def reset_view(self) -> None:
        """Jump back to the initial center; zoom is left alone."""
        self.update_center(self.config.initial_center)

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Advance in-flight tweens to `now` (ms). Call once per scheduled frame.
        Returns True if the view moved.
        """
        now = self._now() if now is None else now
        changed: List[str] = []
        if self._center_tween is not None:
            self.state.center = self._center_tween.value_at(now)
            if self._center_tween.finished(now):
                self._center_tween = None
            changed.append("center")
        if self._zoom_tween is not None:
            self.state.zoom = self.config.clamp_zoom(self._zoom_tween.value_at(now))
            if self._zoom_tween.finished(now):
                self._zoom_tween = None
            changed.append("zoom")
        if changed:
            self._notify(*changed)
        return bool(changed)

    # ------------------------------------------------------------------
    # Immediate view changes
    # ------------------------------------------------------------------
    def update_center(self, target: VecLike) -> None:
        target = Vec2(target)
        self._center_tween = None
        self.state.center = Vec2(target)
        self.state.target_center = Vec2(target)
        self._notify("center")

    def update_zoom(self, target: float) -> None:
        zoom = self.config.clamp_zoom(float(target))
        self._zoom_tween = None
        self.state.zoom = zoom
        self.state.target_zoom = zoom
        self._notify("zoom")

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------
    def viewport_center(self) -> Vec2:
        return Vec2(self.state.width * 0.5, self.state.height * 0.5)

    def world_to_screen(self, world: VecLike) -> Vec2:
        world = Vec2(world)
        return self.viewport_center() + (world - self.state.center) * self.scale

    def screen_to_world(self, screen: VecLike) -> Vec2:
        screen = Vec2(screen)
        return self.state.center + (screen - self.viewport_center()) / self.scale

    def get_viewport(self) -> Viewport:
        s = self.scale
        w = self.state.width / s
        h = self.state.height / s
        c = self.state.center
        return Viewport(c.x - w * 0.5, c.y - h * 0.5, w, h)

    def units_per_pixel(self) -> float:
        return 1.0 / self.scale

    # ------------------------------------------------------------------
    # Drag
    # ------------------------------------------------------------------
    def start_drag(self, point: VecLike) -> None:
        self.state.is_dragging = True
        self.state.drag_start = Vec2(point)
        self._notify("drag")

    def drag(self, point: VecLike) -> bool:
        """
        Pan by the damped pointer delta since the last applied update.
        Movements under DRAG_MIN_DELTA on both axes are held back and
        accumulate until they cross it. Returns True if the center moved.
        """
        st = self.state
        if not st.is_dragging or st.drag_start is None:
            return False
        point = Vec2(point)
        delta = (point - st.drag_start) * settings.DRAG_DAMPING
        if abs(delta.x) < settings.DRAG_MIN_DELTA and abs(delta.y) < settings.DRAG_MIN_DELTA:
            return False
        self._center_tween = None
        st.center = st.center - delta
        st.target_center = Vec2(st.center)
        st.drag_start = point
        self._notify("center")
        return True

    def end_drag(self) -> None:
        if not self.state.is_dragging:
            return
        self.state.is_dragging = False
        self.state.drag_start = None
        self._notify("drag")

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------
    def _ingest(self, kind: str, entity: Any, factory, validator, collection: Dict[str, Any]) -> bool:
        try:
            if isinstance(entity, Mapping):
                entity = factory(entity)
            validator(entity)
        except InvalidEntityError as exc:
            log.warning("Rejected %s", exc)
            return False
        except (AttributeError, TypeError, ValueError) as exc:
            log.warning("Rejected malformed %s %r: %s", kind, entity, exc)
            return False
        if entity.id in collection:
            log.warning("Rejected %s %r: duplicate id", kind, entity.id)
            return False
        collection[entity.id] = entity
        return True

    def add_region(self, region: Union[Region, Mapping[str, Any]]) -> bool:
        ok = self._ingest("region", region, Region.from_dict, validate_region, self.state.regions)
        if ok:
            self._notify("regions")
        return ok

    def add_poi(self, poi: Union[POI, Mapping[str, Any]]) -> bool:
        ok = self._ingest("poi", poi, POI.from_dict, validate_poi, self.state.pois)
        if ok:
            self._notify("pois")
        return ok

    def add_path(self, path: Union[Path, Mapping[str, Any]]) -> bool:
        ok = self._ingest("path", path, Path.from_dict, validate_path, self.state.paths)
        if ok:
            self._notify("paths")
        return ok

    def remove_region(self, region_id: str) -> bool:
        if self.state.regions.pop(region_id, None) is None:
            return False
        self._notify("regions")
        return True

    def remove_poi(self, poi_id: str) -> bool:
        if self.state.pois.pop(poi_id, None) is None:
            return False
        changed = ["pois"]
        if self.state.hovered_poi_id == poi_id:
            self.state.hovered_poi_id = None
            changed.append("hover")
        self._notify(*changed)
        return True

    def remove_path(self, path_id: str) -> bool:
        if self.state.paths.pop(path_id, None) is None:
            return False
        self._notify("paths")
        return True

    def clear_regions(self) -> None:
        self.state.regions.clear()
        self._notify("regions")

    def clear_pois(self) -> None:
        self.state.pois.clear()
        self.state.hovered_poi_id = None
        self._notify("pois", "hover")

    def clear_paths(self) -> None:
        self.state.paths.clear()
        self._notify("paths")

    def set_initial_data(self, regions: Iterable[Any] = (), pois: Iterable[Any] = (),
                         paths: Iterable[Any] = ()) -> Tuple[int, int, int]:
        """
        Replace every collection. Bad records are logged and skipped; the rest
        of the batch still loads. Returns accepted (regions, pois, paths) counts.
        """
        st = self.state
        st.regions, st.pois, st.paths = {}, {}, {}
        st.hovered_poi_id = None
        n_regions = sum(self._ingest("region", r, Region.from_dict, validate_region, st.regions) for r in regions)
        n_pois = sum(self._ingest("poi", p, POI.from_dict, validate_poi, st.pois) for p in pois)
        n_paths = sum(self._ingest("path", p, Path.from_dict, validate_path, st.paths) for p in paths)
        log.info("Loaded %d regions, %d POIs, %d paths", n_regions, n_pois, n_paths)
        self._notify("regions", "pois", "paths", "hover")
        return n_regions, n_pois, n_paths

    # ------------------------------------------------------------------
    # Hover, size, theme, config
    # ------------------------------------------------------------------
    def set_hovered_poi(self, poi_id: Optional[str]) -> None:
        if poi_id == self.state.hovered_poi_id:
            return
        self.state.hovered_poi_id = poi_id
        self._notify("hover")

    def set_size(self, width: int, height: int) -> None:
        """Logical surface size; unusable values fall back to the defaults."""
        width = int(width) if width and width > 0 else settings.DEFAULT_WIDTH
        height = int(height) if height and height > 0 else settings.DEFAULT_HEIGHT
        if (width, height) == (self.state.width, self.state.height):
            return
        self.state.width, self.state.height = width, height
        self._notify("size")

    def set_theme(self, theme: Union[Theme, str]) -> None:
        if isinstance(theme, str):
            match = next((t for t in self.config.themes if t.name == theme), None)
            if match is None:
                raise KeyError(f"unknown theme {theme!r}")
            theme = match
        self.state.theme = theme
        self._notify("theme")

    def cycle_theme(self) -> Theme:
        themes = self.config.themes
        try:
            idx = themes.index(self.state.theme)
        except ValueError:
            idx = -1
        self.set_theme(themes[(idx + 1) % len(themes)])
        return self.state.theme

    def configure(self, config: MapConfig) -> None:
        """Swap bounds/themes at runtime; current and target zoom are re-clamped."""
        self.config = config
        st = self.state
        st.zoom = config.clamp_zoom(st.zoom)
        st.target_zoom = config.clamp_zoom(st.target_zoom)
        if self._zoom_tween is not None:
            self._zoom_tween.end = st.target_zoom
        if st.theme not in config.themes:
            st.theme = config.themes[0]
        self._notify("zoom", "theme")
