from .collision import IntersectionPair, find_intersections, intersected, intersection_aabb
from .geometry import AABB, RigidTransform
from .grid import VoxelGrid
from .preprocess import from_indexed_mesh, from_trimesh, voxelize_mesh
from .render import SurfaceMesh, surface_mesh

__all__ = [
    "AABB",
    "IntersectionPair",
    "RigidTransform",
    "SurfaceMesh",
    "VoxelGrid",
    "find_intersections",
    "from_indexed_mesh",
    "from_trimesh",
    "intersected",
    "intersection_aabb",
    "surface_mesh",
    "voxelize_mesh",
]
