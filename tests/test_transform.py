import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from cvoxel.geometry.transform import RigidTransform


def test_identity_leaves_points_alone():
    t = RigidTransform.identity()
    pts = np.array([[1.0, 2.0, 3.0], [-1.0, 0.5, 0.0]])
    assert np.allclose(t.apply(pts), pts)
    assert np.allclose(t.euler, (0.0, 0.0, 0.0))


def test_yaw_rotates_about_z():
    t = RigidTransform.from_euler(0.0, 0.0, np.pi / 2, translation=(1.0, 0.0, 0.0))
    assert np.allclose(t.apply([1.0, 0.0, 0.0]), [1.0, 1.0, 0.0])


def test_euler_order_is_roll_then_pitch_then_yaw():
    roll, pitch, yaw = 0.3, -0.4, 1.1
    t = RigidTransform.from_euler(roll, pitch, yaw)
    expected = (
        Rotation.from_euler("z", yaw) * Rotation.from_euler("y", pitch) * Rotation.from_euler("x", roll)
    ).as_matrix()
    assert np.allclose(t.rotation.as_matrix(), expected)


def test_euler_edit_does_not_drift():
    t = RigidTransform.from_euler(0.3, -0.2, 1.1)
    q0 = t.quaternion
    for _ in range(200):
        t.set_euler(*t.euler)
    assert np.allclose(t.euler, (0.3, -0.2, 1.1), atol=1e-10)
    assert Rotation.from_quat(q0).approx_equal(t.rotation, atol=1e-10)


def test_translation_accessors():
    t = RigidTransform()
    t.set_translation(1.0, 2.0, 3.0)
    t.translate([0.5, 0.0, -1.0])
    assert np.allclose(t.translation, [1.5, 2.0, 2.0])

    # returned vector is a copy
    v = t.translation
    v[0] = 100.0
    assert t.translation[0] == pytest.approx(1.5)

    with pytest.raises(ValueError):
        t.translation = [1.0, 2.0]
    with pytest.raises(ValueError):
        t.translation = [np.nan, 0.0, 0.0]


def test_inverse_and_composition():
    a = RigidTransform.from_euler(0.1, 0.7, -0.3, translation=(1.0, -2.0, 0.5))
    b = RigidTransform.from_euler(-0.5, 0.2, 0.9, translation=(0.0, 3.0, 1.0))
    p = np.array([[0.3, -0.1, 2.0], [1.0, 1.0, 1.0]])

    assert np.allclose(a.apply_inverse(a.apply(p)), p)
    assert np.allclose(a.inverse().apply(p), a.apply_inverse(p))
    assert np.allclose((a * b).apply(p), a.apply(b.apply(p)))
    assert (a * a.inverse()).isclose(RigidTransform.identity(), atol=1e-9)


def test_matrix_matches_apply_and_scales_locally():
    t = RigidTransform.from_euler(0.2, 0.4, 0.6, translation=(1.0, 2.0, 3.0))
    p = np.array([0.5, -0.25, 1.0])

    m = t.matrix()
    assert np.allclose(m[:3, :3] @ p + m[:3, 3], t.apply(p))

    scale = np.array([2.0, 3.0, 4.0])
    ms = t.matrix(scale=scale)
    assert np.allclose(ms[:3, :3] @ p + ms[:3, 3], t.apply(p * scale))


def test_copy_is_independent():
    a = RigidTransform.from_euler(0.0, 0.0, 0.5, translation=(1.0, 0.0, 0.0))
    b = a.copy()
    b.set_euler(0.0, 0.0, 0.0)
    b.set_translation(0.0, 0.0, 0.0)
    assert a.euler[2] == pytest.approx(0.5)
    assert a.translation[0] == pytest.approx(1.0)


@pytest.mark.parametrize(
    "rotation",
    [
        Rotation.from_euler("z", [0.1, 0.2]),   # a stack of two rotations
        "x",
        np.eye(3),
    ],
)
def test_constructor_rejects_what_the_setter_rejects(rotation):
    with pytest.raises(ValueError):
        RigidTransform(rotation=rotation)

    t = RigidTransform.identity()
    with pytest.raises(ValueError):
        t.rotation = rotation
    assert t.isclose(RigidTransform.identity())


def test_constructor_accepts_single_rotation():
    r = Rotation.from_euler("z", 0.25)
    t = RigidTransform(rotation=r, translation=(0.0, 1.0, 0.0))
    assert np.allclose(t.rotation.as_quat(), r.as_quat())
