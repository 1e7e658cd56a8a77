from .intersection import IntersectionPair, find_intersections, intersected, intersection_aabb

__all__ = [
    "IntersectionPair",
    "find_intersections",
    "intersected",
    "intersection_aabb",
]
