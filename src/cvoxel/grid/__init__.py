from .index import (
    coord_to_index,
    index_to_coord,
    local_to_coord,
    voxel_center_local,
    voxel_corners_local,
)
from .voxels import VoxelGrid

__all__ = [
    "VoxelGrid",
    "coord_to_index",
    "index_to_coord",
    "local_to_coord",
    "voxel_center_local",
    "voxel_corners_local",
]
