"""
Broad- and narrow-phase intersection between two posed voxel grids.

Broad phase bounds each grid's rotated box by an AABB in world space and
intersects them. Narrow phase walks occupied cells of the first grid in
ascending index order and returns the first cell of the second grid (again
ascending) whose world cell AABB overlaps it. Pruning to the broad-phase region
only drops cells that could never be part of an overlapping pair, so the
returned pair does not depend on it.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..geometry.aabb import AABB, boxes_overlap, boxes_touch
from ..geometry.transform import RigidTransform
from ..grid.voxels import VoxelGrid

logger = logging.getLogger(__name__)

# upper bound on cells in one (A chunk x B candidates) overlap matrix
DEFAULT_CHUNK_CELLS = 1 << 20


@dataclass
class IntersectionPair:
    first: int                  # position of the first grid in the input sequence
    second: int
    aabb: AABB                  # world-space broad-phase overlap
    voxels: Optional[Tuple[int, int]] = None  # (index in first, index in second)

    @property
    def touching(self) -> bool:
        return self.voxels is not None


def _world_aabb(grid: VoxelGrid, transform: RigidTransform) -> AABB:
    return grid.local_aabb().transformed(transform)


def _cell_world_bounds(grid: VoxelGrid, transform: RigidTransform, indices: np.ndarray):
    """
    World AABBs of the given cells, (N,3) mins and maxs.

    Every cell is the same cube rotated the same way, so the AABB of its 8
    transformed corners is center +/- |R| @ (dx/2, dx/2, dx/2).
    """
    centers = transform.apply(grid.voxel_center_local(indices).reshape(-1, 3))
    half = np.abs(transform.rotation.as_matrix()) @ np.full(3, grid.dx * 0.5)
    return centers - half, centers + half


def _posed_intersection_aabb(
    a: VoxelGrid, ta: RigidTransform, b: VoxelGrid, tb: RigidTransform,
) -> Optional[AABB]:
    return _world_aabb(a, ta).intersection(_world_aabb(b, tb))


def _posed_intersected(
    a: VoxelGrid,
    ta: RigidTransform,
    b: VoxelGrid,
    tb: RigidTransform,
    region: Optional[AABB],
    chunk_cells: int,
) -> Optional[Tuple[int, int]]:
    if region is None:
        return None

    ia = a.occupied_indices()
    ib = b.occupied_indices()
    if ia.size == 0 or ib.size == 0:
        return None

    mins_a, maxs_a = _cell_world_bounds(a, ta, ia)
    keep = boxes_touch(mins_a, maxs_a, region)
    ia, mins_a, maxs_a = ia[keep], mins_a[keep], maxs_a[keep]

    mins_b, maxs_b = _cell_world_bounds(b, tb, ib)
    keep = boxes_touch(mins_b, maxs_b, region)
    ib, mins_b, maxs_b = ib[keep], mins_b[keep], maxs_b[keep]

    if ia.size == 0 or ib.size == 0:
        return None

    step = max(1, chunk_cells // ib.size)
    for start in range(0, ia.size, step):
        stop = start + step
        hits = boxes_overlap(mins_a[start:stop], maxs_a[start:stop], mins_b, maxs_b)
        rows = np.flatnonzero(hits.any(axis=1))
        if rows.size:
            row = int(rows[0])
            col = int(np.argmax(hits[row]))
            return int(ia[start + row]), int(ib[col])
    return None


def intersection_aabb(a: VoxelGrid, b: VoxelGrid) -> Optional[AABB]:
    """
    World-space overlap of the two grids' bounding boxes, or None.

    Touching boxes overlap with zero width on the touching axis.
    """
    return _posed_intersection_aabb(a, a.transform, b, b.transform)


def intersected(
    a: VoxelGrid,
    b: VoxelGrid,
    *,
    chunk_cells: int = DEFAULT_CHUNK_CELLS,
) -> Optional[Tuple[int, int]]:
    """
    First pair of occupied voxels (index in a, index in b) whose world cell
    AABBs overlap, in ascending index order; None if there is none.
    """
    region = _posed_intersection_aabb(a, a.transform, b, b.transform)
    return _posed_intersected(a, a.transform, b, b.transform, region, chunk_cells)


def find_intersections(
    grids: Sequence[VoxelGrid],
    *,
    ordered: bool = False,
    chunk_cells: int = DEFAULT_CHUNK_CELLS,
) -> List[IntersectionPair]:
    """
    All-pairs scan over live grids.

    Transforms are snapshotted once up front so a batch sees one consistent
    pose per grid. With `ordered`, both (i, j) and (j, i) are reported.
    The scan is quadratic in the number of grids; use it for small scenes.
    """
    poses = [g.transform.copy() for g in grids]
    out: List[IntersectionPair] = []
    for i, gi in enumerate(grids):
        for j, gj in enumerate(grids):
            if i == j or (not ordered and j < i):
                continue
            region = _posed_intersection_aabb(gi, poses[i], gj, poses[j])
            if region is None:
                continue
            voxels = _posed_intersected(gi, poses[i], gj, poses[j], region, chunk_cells)
            out.append(IntersectionPair(first=i, second=j, aabb=region, voxels=voxels))
            logger.debug("Grids %d and %d: bounds overlap, voxel pair %s", i, j, voxels)
    return out
