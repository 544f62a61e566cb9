# vmap/demo.py
"""
Standalone demo: four adjacent regions, random POIs and one routed path.

    python -m vmap --pois 1000 --seed 7
    python -m vmap --headless --frames 120 --budget low-end
"""
from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import List, Optional, Sequence, Tuple

import vmap.utils.settings as settings
from vmap.core.geometry import Vec2
from vmap.core.pathfinding import find_path, simplify_path, smooth_path
from vmap.core.types import POI, Category, Path, Region, RenderBudget
from vmap.utils.error_report import install_excepthook
from vmap.utils.logging_setup import configure_logging
from vmap.utils.pygame_bootstrap import init_pygame_display

log = logging.getLogger(__name__)

_QUADRANTS = (
    ("north-west", (300, 300), "#3b82f6", "#1d4ed8"),
    ("north-east", (700, 300), "#10b981", "#059669"),
    ("south-west", (300, 700), "#f59e0b", "#d97706"),
    ("south-east", (700, 700), "#ef4444", "#dc2626"),
)
_QUAD_SIZE = 400


def demo_regions() -> List[Region]:
    out = []
    for i, (name, (x, y), fill, border) in enumerate(_QUADRANTS, start=1):
        s = _QUAD_SIZE
        out.append(Region(f"region-{i}", name.title(),
                          [(x, y), (x + s, y), (x + s, y + s), (x, y + s)],
                          color=fill, border_color=border))
    return out


def demo_pois(count: int, rng: random.Random) -> List[POI]:
    categories = list(Category)
    out = []
    for i in range(count):
        cat = rng.choice(categories)
        out.append(POI(
            id=f"poi-{i}",
            name=f"{cat.value.title()} {i}",
            coordinate=(200 + rng.random() * 1000, 200 + rng.random() * 1000),
            category=cat,
            description=f"A {cat.value} spot, number {i} on the demo map",
            importance=rng.choice((1.0, 1.0, 1.0, 2.0, 3.0)),
        ))
    return out


def demo_path(rng: random.Random, grid_step: float = 20.0) -> Optional[Path]:
    start = Vec2(300 + rng.random() * 800, 300 + rng.random() * 800)
    end = Vec2(300 + rng.random() * 800, 300 + rng.random() * 800)
    points = find_path(start, end, grid_step)
    if not points:
        log.warning("Demo route %s -> %s not found", start, end)
        return None
    points = smooth_path(simplify_path(points))
    return Path.from_coordinates("route-1", points, color="#3b82f6")


def build_demo_data(poi_count: int, seed: Optional[int] = None) -> Tuple[List[Region], List[POI], List[Path]]:
    rng = random.Random(seed)
    path = demo_path(rng)
    return demo_regions(), demo_pois(poi_count, rng), [path] if path else []


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="vmap", description="Interactive virtual map demo")
    p.add_argument("--pois", type=int, default=1000, help="number of random POIs")
    p.add_argument("--seed", type=int, default=None, help="random seed for the demo data")
    p.add_argument("--budget", choices=("desktop", "mobile", "low-end"), default="desktop")
    p.add_argument("--headless", action="store_true", help="use SDL dummy drivers")
    p.add_argument("--frames", type=int, default=None, help="stop after N frames")
    p.add_argument("--log-level", default="INFO", choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    p.add_argument("--log-file", action="store_true", help="also log to logs/")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging(getattr(logging, args.log_level), log_to_file=args.log_file)
    install_excepthook()

    screen = init_pygame_display((settings.DEFAULT_WIDTH, settings.DEFAULT_HEIGHT),
                                 caption=settings.WINDOW_TITLE,
                                 headless=True if args.headless else None)

    import pygame  # after display bootstrap
    from vmap.ui.panel import VirtualMapPanel

    regions, pois, paths = build_demo_data(args.pois, args.seed)
    panel = VirtualMapPanel(
        regions, pois, paths,
        on_poi_click=lambda poi_id: log.info("POI clicked: %s", poi_id),
        on_map_click=lambda world: log.info("Map clicked at (%.1f, %.1f)", world.x, world.y),
        budget=RenderBudget.from_name(args.budget),
        size=screen.get_size(),
    )
    try:
        frames = panel.run(screen, max_frames=args.frames)
        log.info("Exited after %d frames", frames)
    finally:
        panel.close()
        pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
