from __future__ import annotations
import logging
from typing import Optional, Sequence, Union

import numpy as np
import trimesh
from scipy import ndimage

from ..geometry.triangle_box import triangle_area, triangle_bounds, triangle_intersects_boxes
from ..grid.index import local_to_coord, voxel_center_local
from ..grid.voxels import VoxelGrid

logger = logging.getLogger(__name__)

# candidate cells come from the triangle AABB widened by this fraction of dx
_CANDIDATE_PAD = 0.01
# separating-axis tolerance, fraction of dx
_SAT_EPS = 1e-6
# extent / dx that lands within this of an integer is not rounded up
_SHAPE_EPS = 1e-6
# most cells handed to one separating-axis batch
_SAT_BATCH = 1 << 14


class MeshFormatError(ValueError):
    """Mesh data cannot be voxelized (bad layout, empty, or degenerate)."""


def _check_dx(dx: float) -> float:
    try:
        dx = float(dx)
    except (TypeError, ValueError) as e:
        raise MeshFormatError(f"Voxel size is not a number: {dx!r}") from e
    if not np.isfinite(dx) or dx <= 0:
        raise MeshFormatError(f"Voxel size must be positive, got {dx}")
    return dx


def _vertex_array(vertices) -> np.ndarray:
    try:
        v = np.asarray(vertices, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise MeshFormatError(f"Unrecognized vertex layout: {e}") from e
    if v.size == 0:
        raise MeshFormatError("Vertex buffer is empty")
    if v.ndim != 2 or v.shape[1] != 3:
        raise MeshFormatError(f"Vertices must be (N,3) positions, got shape {v.shape}")
    if not np.all(np.isfinite(v)):
        raise MeshFormatError("Vertex buffer contains non-finite coordinates")
    return v


def triangles_from_buffer(vertices) -> np.ndarray:
    """Non-indexed triangle list -> (T,3,3)."""
    v = _vertex_array(vertices)
    if v.shape[0] % 3 != 0:
        raise MeshFormatError(f"Triangle list needs a multiple of 3 vertices, got {v.shape[0]}")
    return v.reshape(-1, 3, 3)


def triangles_from_indexed(vertices, indices) -> np.ndarray:
    """Indexed triangle list (16- or 32-bit indices) -> (T,3,3)."""
    v = _vertex_array(vertices)
    ids = np.asarray(indices)
    if ids.size == 0:
        raise MeshFormatError("Index buffer is empty")
    if not np.issubdtype(ids.dtype, np.integer):
        raise MeshFormatError(f"Indices must be integers, got dtype {ids.dtype}")
    ids = ids.astype(np.int64).reshape(-1)
    if ids.shape[0] % 3 != 0:
        raise MeshFormatError(f"Index count must be a multiple of 3, got {ids.shape[0]}")
    if ids.min() < 0 or ids.max() >= v.shape[0]:
        raise MeshFormatError(
            f"Indices out of range [0, {v.shape[0]}): min={ids.min()}, max={ids.max()}"
        )
    return v[ids].reshape(-1, 3, 3)


def triangle_candidate_cells(
    tri: np.ndarray,
    *,
    dx: float,
    half_size: np.ndarray,
    shape: Sequence[int],
    pad: float,
) -> np.ndarray:
    """
    Cells that may touch a triangle given in grid-local coordinates, (N,3).

    The triangle AABB is walked column by column along the axis where the
    triangle normal is largest; each column keeps only the cells between the
    lowest and highest point of the plane over the column footprint. That is
    at most a few layers per column, so the count grows with the triangle
    area rather than the volume of its bounding box.
    """
    upper = np.asarray(shape, dtype=np.int64) - 1
    lo, hi = triangle_bounds(tri[0], tri[1], tri[2])
    cmin = np.clip(local_to_coord(lo - pad, dx, half_size), 0, upper)
    cmax = np.clip(local_to_coord(hi + pad, dx, half_size), 0, upper)

    normal = np.cross(tri[1] - tri[0], tri[2] - tri[0])
    if not normal.any():
        # zero-area triangle: any plane through its longest edge contains it
        edges = np.stack([tri[1] - tri[0], tri[2] - tri[1], tri[0] - tri[2]])
        edge = edges[int(np.argmax(np.abs(edges).sum(axis=1)))]
        normal = np.cross(edge, np.eye(3)[int(np.argmin(np.abs(edge)))])
    k = int(np.argmax(np.abs(normal)))
    i, j = [a for a in range(3) if a != k]

    ci, cj = np.meshgrid(
        np.arange(cmin[i], cmax[i] + 1),
        np.arange(cmin[j], cmax[j] + 1),
        indexing="ij",
    )
    ci = ci.ravel()
    cj = cj.ravel()

    if normal[k] == 0.0:
        # no plane to follow, keep the whole column
        klo = np.full(ci.shape[0], cmin[k])
        khi = np.full(ci.shape[0], cmax[k])
    else:
        # plane height along k over the padded footprint; linear, so extremes sit at corners
        x = np.stack([ci * dx - half_size[i] - pad, (ci + 1) * dx - half_size[i] + pad])
        y = np.stack([cj * dx - half_size[j] - pad, (cj + 1) * dx - half_size[j] + pad])
        d = float(normal @ tri[0])
        heights = (d - normal[i] * x[:, None, :] - normal[j] * y[None, :, :]) / normal[k]
        heights = heights.reshape(4, -1)
        klo = np.floor((heights.min(axis=0) - pad + half_size[k]) / dx).astype(np.int64)
        khi = np.floor((heights.max(axis=0) + pad + half_size[k]) / dx).astype(np.int64)
        klo = np.clip(klo, cmin[k], cmax[k])
        khi = np.clip(khi, cmin[k], cmax[k])

    span = khi - klo
    layers = np.arange(int(span.max()) + 1)
    keep = layers[None, :] <= span[:, None]
    ck = (klo[:, None] + layers[None, :])[keep]
    rows = np.nonzero(keep)[0]

    coords = np.empty((ck.shape[0], 3), dtype=np.int64)
    coords[:, i] = ci[rows]
    coords[:, j] = cj[rows]
    coords[:, k] = ck
    return coords


def voxelize_triangles(
    triangles: np.ndarray,
    *,
    dx: float,
    fill_interior: bool = False,
) -> VoxelGrid:
    """
    Conservatively rasterize a triangle soup into a grid centered on its AABB.

    Parameters
    ----------
    triangles : (T,3,3)
    dx : float
        voxel edge length
    fill_interior : bool
        also mark cells enclosed by the surface shell

    Returns
    -------
    VoxelGrid with identity transform. The grid is centered on the mesh AABB
    center (kept in `center`), so with the default pose it contains the mesh
    translated by -center; `placed_at_source()` poses it over the mesh itself.

    Raises
    ------
    MeshFormatError
        if the geometry has no area at all.
    """
    dx = _check_dx(dx)
    tris = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 3)
    if tris.shape[0] == 0:
        raise MeshFormatError("Mesh has no triangles")

    pts = tris.reshape(-1, 3)
    bmin = pts.min(axis=0)
    bmax = pts.max(axis=0)
    extent = bmax - bmin
    scale = float(np.max(extent))
    areas = triangle_area(tris[:, 0], tris[:, 1], tris[:, 2])
    if scale <= 0 or float(areas.max()) <= np.finfo(np.float64).eps * scale * scale:
        raise MeshFormatError("Mesh is degenerate (all triangles have zero area)")

    dims_f = extent / dx
    shape = np.maximum(1, np.ceil(dims_f - _SHAPE_EPS)).astype(int)
    nx, ny, nz = (int(s) for s in shape)
    if nx * ny * nz == 0:
        raise MeshFormatError(f"Derived grid shape has a zero dimension: {(nx, ny, nz)}")

    center = (bmin + bmax) * 0.5
    half_size = shape.astype(np.float64) * dx * 0.5
    cell_half = np.full(3, dx * 0.5)
    pad = dx * _CANDIDATE_PAD

    solid = np.zeros((nx, ny, nz), dtype=bool)
    for tri in tris - center:
        coords = triangle_candidate_cells(tri, dx=dx, half_size=half_size, shape=shape, pad=pad)
        for start in range(0, coords.shape[0], _SAT_BATCH):
            batch = coords[start:start + _SAT_BATCH]
            centers = voxel_center_local(batch, dx, half_size)
            hit = triangle_intersects_boxes(tri[0], tri[1], tri[2], centers, cell_half, eps=dx * _SAT_EPS)
            c = batch[hit]
            solid[c[:, 0], c[:, 1], c[:, 2]] = True

    surface_count = int(solid.sum())
    if fill_interior:
        solid = ndimage.binary_fill_holes(solid)

    grid = VoxelGrid.from_dense(solid, dx, center=center)
    logger.debug(
        "Voxelized %d triangles at dx=%g into shape %s: %d surface, %d occupied",
        tris.shape[0], dx, grid.shape, surface_count, grid.occupied_count,
    )
    return grid


def from_trimesh(
    vertices: Sequence[Sequence[float]],
    dx: float,
    *,
    fill_interior: bool = False,
) -> Optional[VoxelGrid]:
    """
    Voxelize a non-indexed triangle list (vertices consumed in groups of 3).

    Returns None when the mesh cannot be voxelized.
    """
    try:
        return voxelize_triangles(triangles_from_buffer(vertices), dx=dx, fill_interior=fill_interior)
    except MeshFormatError as e:
        logger.warning("Cannot voxelize triangle list: %s", e)
        return None


def from_indexed_mesh(
    vertices: Sequence[Sequence[float]],
    indices: Sequence[int],
    dx: float,
    *,
    fill_interior: bool = False,
) -> Optional[VoxelGrid]:
    """
    Voxelize an indexed mesh; every 3 indices select one triangle.

    Returns None when the mesh cannot be voxelized.
    """
    try:
        tris = triangles_from_indexed(vertices, indices)
        return voxelize_triangles(tris, dx=dx, fill_interior=fill_interior)
    except MeshFormatError as e:
        logger.warning("Cannot voxelize indexed mesh: %s", e)
        return None


def voxelize_mesh(
    mesh: Union[trimesh.Trimesh, trimesh.Scene],
    dx: float,
    *,
    fill_interior: bool = False,
) -> Optional[VoxelGrid]:
    """
    Voxelize a trimesh mesh or scene.

    Scenes are flattened with their geometry transforms applied.
    """
    if isinstance(mesh, trimesh.Scene):
        meshes = [g for g in mesh.dump(concatenate=False) if isinstance(g, trimesh.Trimesh)]
        if len(meshes) == 0:
            logger.warning("Cannot voxelize scene: it contains no meshes")
            return None
        mesh = trimesh.util.concatenate(meshes)
    if not isinstance(mesh, trimesh.Trimesh):
        logger.warning("Cannot voxelize %s: not a triangle mesh", type(mesh).__name__)
        return None
    return from_indexed_mesh(mesh.vertices, mesh.faces, dx, fill_interior=fill_interior)
