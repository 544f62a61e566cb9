# vmap/core/types.py
"""
Map data model: regions, points of interest, paths, themes and the two
configuration objects the host hands to the engine (MapConfig, RenderBudget).

Entities coerce loosely-typed host input (tuples, {"x": .., "y": ..} mappings,
"#rrggbb" strings) in __post_init__ but never raise there; the validate_*
functions decide whether a record is usable and the store drops the ones
that are not.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pygame

import vmap.utils.settings as settings
from vmap.core.errors import InvalidEntityError
from vmap.core.geometry import BoundingBox, Vec2, is_finite_vec, polygon_bounds

RGB = Tuple[int, int, int]


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

class Category(str, Enum):
    FOOD = "food"
    RETAIL = "retail"
    CRAFT = "craft"
    LANDMARK = "landmark"
    CULTURE = "culture"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        """Unknown or missing tags collapse to OTHER."""
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


CATEGORY_COLORS: Dict[Category, RGB] = {
    Category.FOOD: (239, 68, 68),
    Category.RETAIL: (59, 130, 246),
    Category.CRAFT: (139, 92, 246),
    Category.LANDMARK: (245, 158, 11),
    Category.CULTURE: (16, 185, 129),
    Category.OTHER: (107, 114, 128),
}


# -----------------------------------------------------------------------------
# Themes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Theme:
    name: str
    background: RGB
    grid_color: RGB
    region_fill_opacity: float
    poi_icon_size: int
    path_color: RGB
    text_color: RGB


LIGHT_THEME = Theme("light", (248, 250, 252), (226, 232, 240), 0.3, 14, (59, 130, 246), (30, 41, 59))
DARK_THEME = Theme("dark", (15, 23, 42), (51, 65, 85), 0.4, 14, (96, 165, 250), (241, 245, 249))
HIGH_CONTRAST_THEME = Theme("high_contrast", (255, 255, 255), (209, 213, 219), 0.5, 16, (239, 68, 68), (0, 0, 0))

DEFAULT_THEMES: Tuple[Theme, ...] = (LIGHT_THEME, DARK_THEME, HIGH_CONTRAST_THEME)


# -----------------------------------------------------------------------------
# Coercion helpers
# -----------------------------------------------------------------------------

def _coerce_vec(value: Any) -> Any:
    """Best-effort conversion to Vector2; returns the input unchanged on failure."""
    if isinstance(value, Vec2):
        return Vec2(value)
    if isinstance(value, Mapping):
        try:
            return Vec2(float(value["x"]), float(value["y"]))
        except (KeyError, TypeError, ValueError):
            return value
    try:
        x, y = value
        return Vec2(float(x), float(y))
    except (TypeError, ValueError):
        return value


def _coerce_color(value: Any) -> Any:
    if value is None or isinstance(value, pygame.Color):
        return value
    try:
        return pygame.Color(value)
    except (TypeError, ValueError):
        return value


# -----------------------------------------------------------------------------
# Entities
# -----------------------------------------------------------------------------

@dataclass
class Region:
    id: str
    name: str
    coordinates: List[Vec2]
    color: Any = (59, 130, 246)
    border_color: Any = (29, 78, 216)
    border_width: float = 2
    min_zoom: float = 1

    def __post_init__(self) -> None:
        if isinstance(self.coordinates, (list, tuple)):
            self.coordinates = [_coerce_vec(c) for c in self.coordinates]
        self.color = _coerce_color(self.color)
        self.border_color = _coerce_color(self.border_color)

    def bounds(self) -> Optional[BoundingBox]:
        return polygon_bounds(self.coordinates)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Region":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            coordinates=list(data.get("coordinates") or ()),
            color=data.get("color", (59, 130, 246)),
            border_color=data.get("borderColor", data.get("border_color", (29, 78, 216))),
            border_width=data.get("borderWidth", data.get("border_width", 2)),
            min_zoom=data.get("zoomLevel", data.get("min_zoom", 1)),
        )


@dataclass
class POI:
    id: str
    name: str
    coordinate: Vec2
    category: Category = Category.OTHER
    color: Any = None
    icon: Optional[str] = None
    description: Optional[str] = None
    importance: float = 1.0

    def __post_init__(self) -> None:
        self.coordinate = _coerce_vec(self.coordinate)
        self.category = Category.parse(self.category)
        if self.color is None:
            self.color = pygame.Color(CATEGORY_COLORS[self.category])
        else:
            self.color = _coerce_color(self.color)
        if self.importance is None:
            self.importance = 1.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "POI":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            coordinate=data.get("coordinate"),
            category=data.get("category", Category.OTHER),
            color=data.get("color"),
            icon=data.get("icon"),
            description=data.get("description"),
            importance=data.get("importance", 1.0),
        )


@dataclass
class PathPoint:
    coordinate: Vec2
    is_waypoint: bool = False

    def __post_init__(self) -> None:
        self.coordinate = _coerce_vec(self.coordinate)


def _coerce_path_point(value: Any) -> Any:
    if isinstance(value, PathPoint):
        return value
    if isinstance(value, Mapping) and "coordinate" in value:
        return PathPoint(value["coordinate"], bool(value.get("isWaypoint", value.get("is_waypoint", False))))
    return PathPoint(value)


@dataclass
class Path:
    id: str
    points: List[PathPoint]
    color: Any = None
    width: float = settings.DEFAULT_PATH_WIDTH

    def __post_init__(self) -> None:
        if isinstance(self.points, (list, tuple)):
            self.points = [_coerce_path_point(p) for p in self.points]
        self.color = _coerce_color(self.color)

    def coordinates(self) -> List[Vec2]:
        return [p.coordinate for p in self.points]

    def bounds(self) -> Optional[BoundingBox]:
        return polygon_bounds(self.coordinates())

    @classmethod
    def from_coordinates(cls, path_id: str, coords: Sequence[Vec2], *, color: Any = None,
                         width: float = settings.DEFAULT_PATH_WIDTH,
                         waypoint_ends: bool = True) -> "Path":
        """Wrap a router result; first and last points become waypoints."""
        last = len(coords) - 1
        points = [PathPoint(c, waypoint_ends and i in (0, last)) for i, c in enumerate(coords)]
        return cls(path_id, points, color, width)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Path":
        return cls(
            id=data.get("id"),
            points=list(data.get("points") or ()),
            color=data.get("color"),
            width=data.get("width", settings.DEFAULT_PATH_WIDTH),
        )


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------

def _check_id(kind: str, entity_id: Any) -> None:
    if not isinstance(entity_id, str) or not entity_id:
        raise InvalidEntityError(kind, entity_id, "missing id")


def _check_color(kind: str, entity_id: str, value: Any, label: str, *, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not isinstance(value, pygame.Color):
        raise InvalidEntityError(kind, entity_id, f"bad {label} {value!r}")


def _check_number(kind: str, entity_id: str, value: Any, label: str) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise InvalidEntityError(kind, entity_id, f"{label} is not a number") from None
    if not math.isfinite(num):
        raise InvalidEntityError(kind, entity_id, f"{label} is not finite")
    return num


def validate_region(region: Region) -> None:
    _check_id("region", region.id)
    coords = region.coordinates
    if not isinstance(coords, list) or not coords:
        raise InvalidEntityError("region", region.id, "no coordinates")
    for c in coords:
        if not isinstance(c, Vec2) or not is_finite_vec(c):
            raise InvalidEntityError("region", region.id, f"bad coordinate {c!r}")
    _check_color("region", region.id, region.color, "color")
    _check_color("region", region.id, region.border_color, "border color")
    if _check_number("region", region.id, region.border_width, "border width") < 0:
        raise InvalidEntityError("region", region.id, "negative border width")
    _check_number("region", region.id, region.min_zoom, "min zoom")


def validate_poi(poi: POI) -> None:
    _check_id("poi", poi.id)
    c = poi.coordinate
    if not isinstance(c, Vec2) or not is_finite_vec(c):
        raise InvalidEntityError("poi", poi.id, f"bad coordinate {c!r}")
    _check_color("poi", poi.id, poi.color, "color")
    if _check_number("poi", poi.id, poi.importance, "importance") <= 0:
        raise InvalidEntityError("poi", poi.id, "importance must be positive")


def validate_path(path: Path) -> None:
    _check_id("path", path.id)
    points = path.points
    if not isinstance(points, list) or not points:
        raise InvalidEntityError("path", path.id, "needs at least one point")
    for p in points:
        c = p.coordinate
        if not isinstance(c, Vec2) or not is_finite_vec(c):
            raise InvalidEntityError("path", path.id, f"bad coordinate {c!r}")
    _check_color("path", path.id, path.color, "color", optional=True)
    if _check_number("path", path.id, path.width, "width") <= 0:
        raise InvalidEntityError("path", path.id, "width must be positive")


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class MapConfig:
    """Engine bounds and initial view (sane defaults match settings)."""
    initial_center: Tuple[float, float] = settings.INITIAL_CENTER
    initial_zoom: float = settings.INITIAL_ZOOM
    min_zoom: float = settings.MIN_ZOOM
    max_zoom: float = settings.MAX_ZOOM
    themes: Tuple[Theme, ...] = DEFAULT_THEMES

    def __post_init__(self) -> None:
        if self.min_zoom > self.max_zoom:
            raise ValueError(f"min_zoom {self.min_zoom} > max_zoom {self.max_zoom}")
        if not self.themes:
            raise ValueError("at least one theme is required")

    def clamp_zoom(self, zoom: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, zoom))


@dataclass(frozen=True)
class RenderBudget:
    """
    Device/performance profile supplied by the host instead of being sniffed
    at runtime, so renderer behavior is deterministic under test.
    """
    max_visible_pois: int = 5000
    frame_skip: int = 1                 # render 1-of-N scheduling ticks
    clustering_zoom_threshold: float = settings.CLUSTER_ZOOM_THRESHOLD
    min_frame_interval_ms: float = settings.MIN_FRAME_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.frame_skip < 1:
            raise ValueError("frame_skip must be >= 1")
        if self.max_visible_pois < 0:
            raise ValueError("max_visible_pois must be >= 0")

    @classmethod
    def desktop(cls) -> "RenderBudget":
        return cls()

    @classmethod
    def mobile(cls) -> "RenderBudget":
        return cls(max_visible_pois=1000, frame_skip=2)

    @classmethod
    def low_end(cls) -> "RenderBudget":
        return cls(max_visible_pois=300, frame_skip=3, clustering_zoom_threshold=8)

    @classmethod
    def from_name(cls, name: str) -> "RenderBudget":
        presets = {"desktop": cls.desktop, "mobile": cls.mobile, "low-end": cls.low_end, "low_end": cls.low_end}
        try:
            return presets[name.lower()]()
        except KeyError:
            raise ValueError(f"unknown render budget {name!r}") from None
