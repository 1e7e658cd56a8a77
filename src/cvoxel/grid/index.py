from __future__ import annotations
from typing import Tuple, Union

import numpy as np

IndexLike = Union[int, np.ndarray]


def grid_area(shape: Tuple[int, int, int]) -> int:
    return int(shape[0]) * int(shape[1])


def grid_size(shape: Tuple[int, int, int]) -> int:
    return int(shape[0]) * int(shape[1]) * int(shape[2])


def index_to_coord(index: IndexLike, shape: Tuple[int, int, int]):
    """
    Decompose a flat occupancy index into (x, y, z).

    Scalars return a tuple of ints, arrays return an (N,3) int64 array.
    """
    sx = int(shape[0])
    area = grid_area(shape)
    if np.ndim(index) == 0:
        i = int(index)
        assert 0 <= i < grid_size(shape), f"index {i} out of range for shape {tuple(shape)}"
        z = i // area
        rem = i % area
        return rem % sx, rem // sx, z

    idx = np.asarray(index, dtype=np.int64)
    z = idx // area
    rem = idx % area
    return np.stack([rem % sx, rem // sx, z], axis=-1)


def coord_to_index(coord, shape: Tuple[int, int, int]):
    """Inverse of index_to_coord: z * area + y * shape.x + x."""
    sx = int(shape[0])
    area = grid_area(shape)
    c = np.asarray(coord, dtype=np.int64)
    if c.ndim == 1:
        x, y, z = (int(v) for v in c)
        assert 0 <= x < shape[0] and 0 <= y < shape[1] and 0 <= z < shape[2], (
            f"coord {(x, y, z)} out of range for shape {tuple(shape)}"
        )
        return z * area + y * sx + x
    return c[..., 2] * area + c[..., 1] * sx + c[..., 0]


def voxel_center_local(coord, dx: float, half_size: np.ndarray) -> np.ndarray:
    # (coord + 0.5) * dx - half_size
    c = np.asarray(coord, dtype=np.float64)
    return (c + 0.5) * float(dx) - np.asarray(half_size, dtype=np.float64)


# corner offsets in units of one cell, ordered by (x, y, z) bits
_CELL_CORNERS = np.array(
    [[(i >> 0) & 1, (i >> 1) & 1, (i >> 2) & 1] for i in range(8)],
    dtype=np.float64,
)


def voxel_corners_local(coord, dx: float, half_size: np.ndarray) -> np.ndarray:
    """
    The 8 corners of one cell (8,3) or of many cells (N,8,3) in local space.
    """
    c = np.asarray(coord, dtype=np.float64)
    lo = c * float(dx) - np.asarray(half_size, dtype=np.float64)
    return lo[..., None, :] + _CELL_CORNERS * float(dx)


def local_to_coord(points, dx: float, half_size: np.ndarray) -> np.ndarray:
    """Cell coordinates (floor) of local-space points; not clamped to the grid."""
    p = np.asarray(points, dtype=np.float64)
    return np.floor((p + np.asarray(half_size, dtype=np.float64)) / float(dx)).astype(np.int64)
