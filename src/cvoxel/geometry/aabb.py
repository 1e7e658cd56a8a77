from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from .transform import RigidTransform


@dataclass
class AABB:
    mins: np.ndarray   # (3,)
    maxs: np.ndarray   # (3,)

    def __post_init__(self):
        self.mins = np.asarray(self.mins, dtype=np.float64).reshape(3)
        self.maxs = np.asarray(self.maxs, dtype=np.float64).reshape(3)

    @classmethod
    def from_points(cls, points: np.ndarray) -> AABB:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if pts.shape[0] == 0:
            raise ValueError("Cannot bound an empty point set")
        return cls(mins=pts.min(axis=0), maxs=pts.max(axis=0))

    @classmethod
    def from_half_size(cls, half_size: np.ndarray) -> AABB:
        h = np.asarray(half_size, dtype=np.float64)
        return cls(mins=-h, maxs=h.copy())

    def middle(self) -> np.ndarray:
        return (self.mins + self.maxs) * 0.5

    def size(self) -> np.ndarray:
        return self.maxs - self.mins

    def corners(self) -> np.ndarray:
        """(8,3) corners, ordered by (x, y, z) bits like the grid cell corners."""
        bits = np.array([[(i >> 0) & 1, (i >> 1) & 1, (i >> 2) & 1] for i in range(8)], dtype=bool)
        return np.where(bits, self.maxs, self.mins)

    def transformed(self, transform: RigidTransform) -> AABB:
        """World AABB of this box after a rigid transform (bounds the rotated box)."""
        return AABB.from_points(transform.apply(self.corners()))

    def overlaps(self, other: AABB) -> bool:
        # inclusive: touching boxes overlap with zero width
        return bool(np.all(self.mins <= other.maxs) and np.all(other.mins <= self.maxs))

    def intersection(self, other: AABB) -> Optional[AABB]:
        lo = np.maximum(self.mins, other.mins)
        hi = np.minimum(self.maxs, other.maxs)
        if np.any(lo > hi):
            return None
        return AABB(mins=lo, maxs=hi)

    def relative_to(self, transform: RigidTransform) -> np.ndarray:
        """Center of this world box expressed in the local frame of `transform`."""
        return transform.apply_inverse(self.middle())

    def isclose(self, other: AABB, *, atol: float = 1e-6) -> bool:
        return bool(np.allclose(self.mins, other.mins, atol=atol) and np.allclose(self.maxs, other.maxs, atol=atol))


def boxes_overlap(mins_a: np.ndarray, maxs_a: np.ndarray, mins_b: np.ndarray, maxs_b: np.ndarray) -> np.ndarray:
    """
    Pairwise inclusive overlap matrix between two batches of boxes.

    Parameters
    ----------
    mins_a, maxs_a : (N,3)
    mins_b, maxs_b : (M,3)

    Returns
    -------
    (N,M) bool
    """
    lo_ok = mins_a[:, None, :] <= maxs_b[None, :, :]
    hi_ok = mins_b[None, :, :] <= maxs_a[:, None, :]
    return np.all(lo_ok & hi_ok, axis=-1)


def boxes_touch(mins: np.ndarray, maxs: np.ndarray, box: AABB) -> np.ndarray:
    """(N,) mask of boxes overlapping a single AABB (inclusive)."""
    return np.all((mins <= box.maxs) & (box.mins <= maxs), axis=-1)
