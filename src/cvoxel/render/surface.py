from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import trimesh

from ..grid.index import coord_to_index
from ..grid.voxels import VoxelGrid

DEFAULT_COLOR = (0.8, 0.8, 0.8, 1.0)

# (axis, step, quad corners in cell units, counter-clockwise seen from outside)
_FACES = (
    (0, +1, ((1, 0, 0), (1, 1, 0), (1, 1, 1), (1, 0, 1))),
    (0, -1, ((0, 0, 0), (0, 0, 1), (0, 1, 1), (0, 1, 0))),
    (1, +1, ((0, 1, 0), (0, 1, 1), (1, 1, 1), (1, 1, 0))),
    (1, -1, ((0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1))),
    (2, +1, ((0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1))),
    (2, -1, ((0, 0, 0), (0, 1, 0), (1, 1, 0), (1, 0, 0))),
)
_QUAD_TRIANGLES = np.array([[0, 1, 2], [0, 2, 3]], dtype=np.uint32)


@dataclass
class SurfaceMesh:
    positions: np.ndarray   # (V,3) float32, local grid space, 4 per face
    colors: np.ndarray      # (V,4) float32 RGBA
    normals: np.ndarray     # (V,3) float32
    indices: np.ndarray     # (T,3) uint32, 2 per face

    @property
    def face_count(self) -> int:
        return self.positions.shape[0] // 4

    @property
    def is_empty(self) -> bool:
        return self.positions.shape[0] == 0

    def triangle_list(self) -> Tuple[np.ndarray, np.ndarray]:
        """Non-indexed (positions, colors), 3 vertices per triangle."""
        flat = self.indices.reshape(-1)
        return self.positions[flat], self.colors[flat]

    def to_trimesh(self) -> trimesh.Trimesh:
        rgba = np.clip(np.round(self.colors * 255.0), 0, 255).astype(np.uint8)
        return trimesh.Trimesh(
            vertices=self.positions,
            faces=self.indices,
            vertex_normals=self.normals,
            vertex_colors=rgba,
            process=False,
        )

    def export(self, path: Union[str, Path]) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        self.to_trimesh().export(p)
        return p


def _rgba(color: Sequence[float]) -> np.ndarray:
    c = np.asarray(color, dtype=np.float32).reshape(-1)
    if c.shape[0] == 3:
        c = np.append(c, np.float32(1.0))
    if c.shape[0] != 4:
        raise ValueError(f"Color must have 3 or 4 components, got {c.shape[0]}")
    return c


def surface_mesh(
    grid: VoxelGrid,
    *,
    color: Sequence[float] = DEFAULT_COLOR,
    voxel_colors: Optional[Mapping[int, Sequence[float]]] = None,
) -> SurfaceMesh:
    """
    Quads for every voxel face that borders an empty cell or the grid boundary.

    Faces are ordered by voxel index, then by direction (+X, -X, +Y, -Y, +Z, -Z).
    Positions are in the grid's local space; apply `grid.transform` to place
    the mesh in the world.

    Parameters
    ----------
    grid : VoxelGrid
    color : RGB or RGBA
        color of every vertex
    voxel_colors : {flat index: RGB or RGBA} | None
        per-voxel overrides, e.g. to highlight intersecting voxels
    """
    # [x, y, z] volume with one empty cell of padding on every side
    solid = np.transpose(grid.dense(), (2, 1, 0))
    padded = np.pad(solid, 1, mode="constant", constant_values=False)
    inner = (slice(1, -1),) * 3

    face_voxel = []
    face_dir = []
    for d, (axis, step, _) in enumerate(_FACES):
        neighbor = np.roll(padded, -step, axis=axis)[inner]
        exposed = solid & ~neighbor
        coords = np.argwhere(exposed)
        face_voxel.append(coord_to_index(coords, grid.shape).reshape(-1))
        face_dir.append(np.full(coords.shape[0], d, dtype=np.int64))

    voxel_ids = np.concatenate(face_voxel)
    dirs = np.concatenate(face_dir)
    order = np.lexsort((dirs, voxel_ids))
    voxel_ids = voxel_ids[order]
    dirs = dirs[order]
    n_faces = voxel_ids.shape[0]

    corners = np.array([f[2] for f in _FACES], dtype=np.float64)       # (6,4,3)
    normals = np.zeros((6, 3), dtype=np.float32)
    for d, (axis, step, _) in enumerate(_FACES):
        normals[d, axis] = step

    coords = np.asarray(grid.coord(voxel_ids), dtype=np.float64).reshape(-1, 3)
    lo = coords * grid.dx - grid.half_size                               # (F,3)
    positions = lo[:, None, :] + corners[dirs] * grid.dx                 # (F,4,3)

    colors = np.broadcast_to(_rgba(color), (n_faces, 4)).copy()
    if voxel_colors:
        for index, c in voxel_colors.items():
            colors[voxel_ids == index] = _rgba(c)

    base = (np.arange(n_faces, dtype=np.uint32) * 4)[:, None, None]
    indices = (base + _QUAD_TRIANGLES[None, :, :]).reshape(-1, 3)

    return SurfaceMesh(
        positions=positions.reshape(-1, 3).astype(np.float32),
        colors=np.repeat(colors, 4, axis=0).astype(np.float32),
        normals=np.repeat(normals[dirs], 4, axis=0).astype(np.float32),
        indices=indices.astype(np.uint32),
    )
