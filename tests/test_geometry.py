import numpy as np

from cvoxel.geometry.aabb import AABB, boxes_overlap
from cvoxel.geometry.transform import RigidTransform
from cvoxel.geometry.triangle_box import triangle_intersects_boxes

HALF = np.array([1.0, 1.0, 1.0])


def _hits(tri, centers):
    return triangle_intersects_boxes(*np.asarray(tri, dtype=float), np.asarray(centers, dtype=float), HALF)


def test_triangle_far_away_misses():
    tri = [[5.0, 5.0, 5.0], [6.0, 5.0, 5.0], [5.0, 6.0, 5.0]]
    assert not _hits(tri, [[0.0, 0.0, 0.0]])[0]


def test_triangle_slicing_through_box_hits():
    # no vertex inside the box, but the triangle cuts straight through it
    tri = [[-10.0, -10.0, 0.0], [10.0, -10.0, 0.0], [0.0, 10.0, 0.0]]
    assert _hits(tri, [[0.0, 0.0, 0.0]])[0]


def test_triangle_separated_by_edge_axis_misses():
    # bounds and plane overlap the box; only the hypotenuse separates it
    tri = [[2.5, 0.0, 0.0], [0.0, 2.5, 0.0], [2.5, 2.5, 0.0]]
    assert not _hits(tri, [[0.0, 0.0, 0.0]])[0]


def test_triangle_touching_face_counts():
    tri = [[1.0, -0.5, -0.5], [1.0, 0.5, -0.5], [1.0, 0.0, 0.5]]
    assert _hits(tri, [[0.0, 0.0, 0.0]])[0]


def test_batch_of_boxes():
    tri = [[-0.5, -0.5, 0.0], [0.5, -0.5, 0.0], [0.0, 0.5, 0.0]]
    centers = [[0.0, 0.0, 0.0], [0.0, 0.0, 5.0], [3.0, 0.0, 0.0], [0.0, 0.0, -1.5]]
    assert _hits(tri, centers).tolist() == [True, False, False, False]


def test_aabb_intersection_and_touching():
    a = AABB(mins=[0, 0, 0], maxs=[1, 1, 1])
    b = AABB(mins=[0.5, 0.5, 0.5], maxs=[2, 2, 2])
    c = AABB(mins=[1, 0, 0], maxs=[2, 1, 1])
    d = AABB(mins=[1.01, 0, 0], maxs=[2, 1, 1])

    overlap = a.intersection(b)
    assert overlap is not None
    assert np.allclose(overlap.mins, [0.5, 0.5, 0.5])
    assert np.allclose(overlap.size(), [0.5, 0.5, 0.5])

    touching = a.intersection(c)
    assert touching is not None
    assert touching.size()[0] == 0.0
    assert a.overlaps(c)

    assert a.intersection(d) is None
    assert not a.overlaps(d)


def test_rotated_box_bounds():
    box = AABB.from_half_size([0.5, 0.5, 0.5])
    t = RigidTransform.from_euler(0.0, 0.0, np.pi / 4, translation=(1.0, 0.0, 0.0))
    world = box.transformed(t)
    r = 0.5 * np.sqrt(2.0)
    assert np.allclose(world.mins, [1.0 - r, -r, -0.5])
    assert np.allclose(world.maxs, [1.0 + r, r, 0.5])
    assert np.allclose(world.relative_to(t), [0.0, 0.0, 0.0])


def test_boxes_overlap_matrix():
    mins_a = np.array([[0.0, 0.0, 0.0], [5.0, 5.0, 5.0]])
    maxs_a = mins_a + 1.0
    mins_b = np.array([[0.5, 0.5, 0.5], [1.0, 0.0, 0.0], [9.0, 9.0, 9.0]])
    maxs_b = mins_b + 1.0
    m = boxes_overlap(mins_a, maxs_a, mins_b, maxs_b)
    assert m.tolist() == [[True, True, False], [False, False, False]]
