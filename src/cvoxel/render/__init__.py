from .surface import DEFAULT_COLOR, SurfaceMesh, surface_mesh

__all__ = [
    "DEFAULT_COLOR",
    "SurfaceMesh",
    "surface_mesh",
]
