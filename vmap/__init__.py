"""
vmap: an embeddable 2D virtual-map engine for pygame.

Regions, points of interest and paths are drawn onto a pan/zoom viewport with
density clustering, hit-testing and grid A* routing.
"""
from __future__ import annotations

from vmap.core.errors import InvalidEntityError, VMapError
from vmap.core.map_state import MapState, MapStore
from vmap.core.pathfinding import find_path, simplify_path, smooth_path
from vmap.core.types import (
    POI,
    Category,
    MapConfig,
    Path,
    PathPoint,
    Region,
    RenderBudget,
    Theme,
)
from vmap.ui.panel import VirtualMapPanel

__version__ = "0.3.0"

__all__ = [
    "Category",
    "InvalidEntityError",
    "MapConfig",
    "MapState",
    "MapStore",
    "POI",
    "Path",
    "PathPoint",
    "Region",
    "RenderBudget",
    "Theme",
    "VMapError",
    "VirtualMapPanel",
    "find_path",
    "simplify_path",
    "smooth_path",
]
