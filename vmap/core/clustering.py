# vmap/core/clustering.py
"""
Density clustering of POIs into uniform world-space cells.

Each occupied cell becomes one Cluster: importance-weighted centroid,
member count and the plurality category (ties go to the category seen
first in collection order).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

import vmap.utils.settings as settings
from vmap.core.geometry import Vec2
from vmap.core.types import POI, Category


def cluster_cell_size(zoom: float) -> float:
    """Cell edge in world units; shrinks as zoom rises, floored."""
    return max(settings.CLUSTER_CELL_MIN,
               settings.CLUSTER_CELL_BASE - (zoom - 1.0) * settings.CLUSTER_CELL_PER_ZOOM)


@dataclass
class Cluster:
    center: Vec2
    count: int
    category: Category
    poi_ids: List[str]

    @property
    def is_single(self) -> bool:
        return self.count == 1


def cluster_pois(pois: Sequence[POI], cell_size: float) -> List[Cluster]:
    if not pois:
        return []
    if not (cell_size > 0 and math.isfinite(cell_size)):
        raise ValueError(f"cell_size must be positive, got {cell_size!r}")

    xy = np.array([(p.coordinate.x, p.coordinate.y) for p in pois], dtype=np.float64)
    weights = np.array([float(p.importance) for p in pois], dtype=np.float64)
    cells = np.floor(xy / cell_size).astype(np.int64)

    # Cells ordered by first appearance so output follows collection order.
    _, first_idx, inverse = np.unique(cells, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)
    n_cells = len(first_idx)

    w_sum = np.bincount(inverse, weights=weights, minlength=n_cells)
    cx = np.bincount(inverse, weights=xy[:, 0] * weights, minlength=n_cells) / w_sum
    cy = np.bincount(inverse, weights=xy[:, 1] * weights, minlength=n_cells) / w_sum
    counts = np.bincount(inverse, minlength=n_cells)

    members: List[List[int]] = [[] for _ in range(n_cells)]
    for i, cell in enumerate(inverse.tolist()):
        members[cell].append(i)

    clusters: List[Cluster] = []
    for cell in np.argsort(first_idx, kind="stable").tolist():
        idxs = members[cell]
        tally = {}
        for i in idxs:
            cat = pois[i].category
            tally[cat] = tally.get(cat, 0) + 1
        # dict keeps insertion order; max() returns the first maximal key
        plurality = max(tally, key=tally.get)
        clusters.append(Cluster(
            center=Vec2(float(cx[cell]), float(cy[cell])),
            count=int(counts[cell]),
            category=plurality,
            poi_ids=[pois[i].id for i in idxs],
        ))
    return clusters
