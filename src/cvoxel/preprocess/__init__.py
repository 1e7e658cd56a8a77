from .voxelize import (
    MeshFormatError,
    from_indexed_mesh,
    from_trimesh,
    voxelize_mesh,
    voxelize_triangles,
)

__all__ = [
    "MeshFormatError",
    "from_indexed_mesh",
    "from_trimesh",
    "voxelize_mesh",
    "voxelize_triangles",
]
