import numpy as np
import pytest

from cvoxel.grid.index import (
    coord_to_index,
    index_to_coord,
    local_to_coord,
    voxel_center_local,
    voxel_corners_local,
)


@pytest.mark.parametrize("shape", [(1, 1, 1), (2, 2, 2), (3, 4, 5), (7, 1, 3)])
def test_flat_index_round_trip(shape):
    n = shape[0] * shape[1] * shape[2]
    idx = np.arange(n)

    coords = index_to_coord(idx, shape)
    assert coords.shape == (n, 3)
    assert np.all(coords >= 0)
    assert np.all(coords < np.asarray(shape))
    assert np.array_equal(coord_to_index(coords, shape), idx)

    for i in range(n):
        x, y, z = index_to_coord(i, shape)
        assert z * shape[0] * shape[1] + y * shape[0] + x == i
        assert coord_to_index((x, y, z), shape) == i


def test_x_runs_fastest():
    shape = (3, 4, 5)
    assert index_to_coord(1, shape) == (1, 0, 0)
    assert index_to_coord(3, shape) == (0, 1, 0)
    assert index_to_coord(12, shape) == (0, 0, 1)


def test_out_of_range_index_asserts():
    with pytest.raises(AssertionError):
        index_to_coord(8, (2, 2, 2))
    with pytest.raises(AssertionError):
        coord_to_index((2, 0, 0), (2, 2, 2))


def test_voxel_center_and_corners():
    half = np.array([0.5, 0.5, 0.5])
    assert np.allclose(voxel_center_local((0, 0, 0), 0.5, half), [-0.25, -0.25, -0.25])
    assert np.allclose(voxel_center_local((1, 1, 1), 0.5, half), [0.25, 0.25, 0.25])

    corners = voxel_corners_local((1, 0, 1), 0.5, half)
    assert corners.shape == (8, 3)
    assert np.allclose(corners.min(axis=0), [0.0, -0.5, 0.0])
    assert np.allclose(corners.max(axis=0), [0.5, 0.0, 0.5])

    many = voxel_corners_local(np.array([[0, 0, 0], [1, 1, 1]]), 0.5, half)
    assert many.shape == (2, 8, 3)


def test_local_to_coord_inverts_centers():
    shape = (3, 4, 5)
    dx = 0.2
    half = np.asarray(shape) * dx / 2
    coords = index_to_coord(np.arange(60), shape)
    centers = voxel_center_local(coords, dx, half)
    assert np.array_equal(local_to_coord(centers, dx, half), coords)
