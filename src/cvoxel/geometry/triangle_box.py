"""
Triangle / axis-aligned box overlap (Akenine-Moller separating axis test).

One triangle is tested against a batch of equally sized boxes at once.
"""
from __future__ import annotations
from typing import Tuple

import numpy as np

_EPSILON = 1e-9


def triangle_bounds(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    return np.minimum(np.minimum(v0, v1), v2), np.maximum(np.maximum(v0, v1), v2)


def triangle_area(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> np.ndarray:
    """Area of one or many triangles (broadcasts over leading axes)."""
    return 0.5 * np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=-1)


def _separated(p: np.ndarray, r, eps: float) -> np.ndarray:
    # p: (N,k) projections of the triangle vertices, r: box projection radius
    return (p.min(axis=-1) > r + eps) | (p.max(axis=-1) < -r - eps)


def triangle_intersects_boxes(
    v0: np.ndarray,
    v1: np.ndarray,
    v2: np.ndarray,
    centers: np.ndarray,
    half_size: np.ndarray,
    *,
    eps: float = _EPSILON,
) -> np.ndarray:
    """
    Parameters
    ----------
    v0, v1, v2 : (3,) triangle vertices
    centers : (N,3) box centers
    half_size : (3,) box half extents, shared by all boxes
    eps : float
        tolerance added on every axis; positive values make the test conservative

    Returns
    -------
    (N,) bool, True where the triangle touches or passes through the box
    """
    h = np.asarray(half_size, dtype=np.float64)
    c = np.asarray(centers, dtype=np.float64).reshape(-1, 3)

    # triangle relative to every box center: (N,3,3) [box, vertex, axis]
    tri = np.stack([v0, v1, v2]).astype(np.float64)
    rel = tri[None, :, :] - c[:, None, :]

    # box face normals
    hit = np.ones(c.shape[0], dtype=bool)
    for axis in range(3):
        hit &= ~_separated(rel[:, :, axis], h[axis], eps)
    if not hit.any():
        return hit

    # triangle normal
    edges = np.stack([tri[1] - tri[0], tri[2] - tri[1], tri[0] - tri[2]])
    normal = np.cross(edges[0], edges[1])
    r = float(np.abs(normal) @ h)
    d = rel[:, 0, :] @ normal
    hit &= ~((d > r + eps) | (d < -r - eps))

    # nine edge x box-axis cross products
    unit = np.eye(3)
    for e in edges:
        for axis in range(3):
            a = np.cross(e, unit[axis])
            if not a.any():
                continue
            p = rel @ a
            ra = float(np.abs(a) @ h)
            hit &= ~_separated(p, ra, eps)
    return hit
