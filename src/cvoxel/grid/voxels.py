from __future__ import annotations
from typing import TYPE_CHECKING, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..geometry.aabb import AABB
from ..geometry.transform import RigidTransform
from .index import (
    coord_to_index,
    grid_area,
    grid_size,
    index_to_coord,
    local_to_coord,
    voxel_center_local,
    voxel_corners_local,
)

if TYPE_CHECKING:
    from ..render.surface import SurfaceMesh


class VoxelGrid:
    """
    Dense occupancy grid of cubic voxels with a rigid local -> world transform.

    Local space spans [-half_size, +half_size]; the corner of voxel (0, 0, 0)
    sits at -half_size. Occupancy is a flat bool array indexed
    z * area + y * shape[0] + x.

    dx, shape and occupancy are fixed at construction; area and half_size are
    derived from them. Only `transform` may be rewritten afterwards.
    """

    __slots__ = ("_dx", "_shape", "_occupancy", "_transform", "_center")

    def __init__(
        self,
        dx: float,
        shape: Tuple[int, int, int],
        occupancy: np.ndarray,
        transform: Optional[RigidTransform] = None,
        center: Optional[Sequence[float]] = None,
    ) -> None:
        dx = float(dx)
        if not np.isfinite(dx) or dx <= 0:
            raise ValueError(f"Voxel size must be positive, got {dx}")
        shape = tuple(int(s) for s in shape)
        if len(shape) != 3 or min(shape) < 1:
            raise ValueError(f"Grid shape must be three positive ints, got {shape}")

        occ = np.array(occupancy, dtype=bool).reshape(-1)
        if occ.shape[0] != grid_size(shape):
            raise ValueError(f"Occupancy has {occ.shape[0]} cells, shape {shape} needs {grid_size(shape)}")
        occ.flags.writeable = False

        self._dx = dx
        self._shape: Tuple[int, int, int] = shape
        self._occupancy = occ
        self._center = np.zeros(3) if center is None else np.asarray(center, dtype=np.float64).reshape(3).copy()
        self._center.flags.writeable = False
        self._transform = RigidTransform.identity()
        if transform is not None:
            self.transform = transform

    @property
    def dx(self) -> float:
        """Voxel edge length."""
        return self._dx

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(nx, ny, nz)"""
        return self._shape

    @property
    def area(self) -> int:
        """nx * ny, the stride of one z layer in the flat index."""
        return grid_area(self._shape)

    @property
    def half_size(self) -> np.ndarray:
        return np.asarray(self._shape, dtype=np.float64) * self._dx * 0.5

    @property
    def occupancy(self) -> np.ndarray:
        """Read-only flat occupancy."""
        return self._occupancy

    @property
    def center(self) -> np.ndarray:
        """Mesh-space point the grid is centered on."""
        return self._center

    @property
    def transform(self) -> RigidTransform:
        return self._transform

    @transform.setter
    def transform(self, value: RigidTransform) -> None:
        if not isinstance(value, RigidTransform):
            raise TypeError(f"transform must be a RigidTransform, got {type(value).__name__}")
        self._transform = value

    @classmethod
    def empty(cls, dx: float, shape: Tuple[int, int, int]) -> VoxelGrid:
        return cls(dx=dx, shape=shape, occupancy=np.zeros(grid_size(shape), dtype=bool))

    @classmethod
    def from_dense(cls, solid: np.ndarray, dx: float, **kwargs) -> VoxelGrid:
        """Build from a (nx, ny, nz) bool volume indexed [x, y, z]."""
        solid = np.asarray(solid, dtype=bool)
        if solid.ndim != 3:
            raise ValueError(f"Expected a 3D volume, got {solid.ndim}D")
        # flat index runs x fastest, so flatten the [z, y, x] view in C order
        flat = np.transpose(solid, (2, 1, 0)).reshape(-1)
        return cls(dx=dx, shape=solid.shape, occupancy=flat, **kwargs)

    # ----------------------------------------------------------------
    # occupancy
    # ----------------------------------------------------------------

    @property
    def size(self) -> int:
        return self.occupancy.shape[0]

    @property
    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.occupancy))

    def occupied_indices(self) -> np.ndarray:
        """Flat indices of solid voxels, ascending."""
        return np.flatnonzero(self.occupancy)

    def is_occupied(self, index: int) -> bool:
        if not 0 <= index < self.size:
            raise IndexError(f"Voxel index {index} out of range [0, {self.size})")
        return bool(self.occupancy[index])

    def dense(self) -> np.ndarray:
        """Read-only (nz, ny, nx) view of the occupancy, indexed [z, y, x]."""
        nx, ny, nz = self.shape
        return self.occupancy.reshape(nz, ny, nx)

    def coord(self, index):
        return index_to_coord(index, self.shape)

    # ----------------------------------------------------------------
    # local / world mapping
    # ----------------------------------------------------------------

    def voxel_center_local(self, index) -> np.ndarray:
        return voxel_center_local(index_to_coord(index, self.shape), self.dx, self.half_size)

    def voxel_center_world(self, index) -> np.ndarray:
        return self.transform.apply(self.voxel_center_local(index))

    def voxel_corners_world(self, index) -> np.ndarray:
        """(8,3) for a scalar index, (N,8,3) for an array of indices."""
        corners = voxel_corners_local(index_to_coord(index, self.shape), self.dx, self.half_size)
        return self.transform.apply(corners.reshape(-1, 3)).reshape(corners.shape)

    def world_to_voxel(self, point) -> Optional[int]:
        """Flat index of the cell containing a world point, or None outside the grid."""
        local = self.transform.apply_inverse(np.asarray(point, dtype=np.float64).reshape(3))
        c = local_to_coord(local, self.dx, self.half_size)
        if np.any(c < 0) or np.any(c >= np.asarray(self.shape)):
            return None
        return coord_to_index(c, self.shape)

    def local_aabb(self) -> AABB:
        return AABB.from_half_size(self.half_size)

    def world_aabb(self) -> AABB:
        return self.local_aabb().transformed(self.transform)

    def placed_at_source(self) -> VoxelGrid:
        """Copy posed so that its world frame matches the source mesh frame."""
        out = self.copy()
        out.transform = RigidTransform(translation=self.center)
        return out

    # ----------------------------------------------------------------
    # queries
    # ----------------------------------------------------------------

    def intersection_aabb(self, other: VoxelGrid) -> Optional[AABB]:
        from ..collision.intersection import intersection_aabb
        return intersection_aabb(self, other)

    def intersected(self, other: VoxelGrid) -> Optional[Tuple[int, int]]:
        from ..collision.intersection import intersected
        return intersected(self, other)

    def surface_mesh(
        self,
        *,
        color: Optional[Sequence[float]] = None,
        voxel_colors: Optional[Mapping[int, Sequence[float]]] = None,
    ) -> SurfaceMesh:
        from ..render.surface import DEFAULT_COLOR, surface_mesh
        return surface_mesh(self, color=DEFAULT_COLOR if color is None else color, voxel_colors=voxel_colors)

    def copy(self) -> VoxelGrid:
        return VoxelGrid(
            dx=self.dx,
            shape=self.shape,
            occupancy=self.occupancy.copy(),
            transform=self.transform.copy(),
            center=self.center.copy(),
        )

    def __repr__(self) -> str:
        return (
            f"VoxelGrid(dx={self.dx:g}, shape={self.shape}, "
            f"occupied={self.occupied_count}/{self.size}, transform={self.transform!r})"
        )
