from .aabb import AABB
from .transform import RigidTransform
from .triangle_box import triangle_intersects_boxes

__all__ = [
    "AABB",
    "RigidTransform",
    "triangle_intersects_boxes",
]
