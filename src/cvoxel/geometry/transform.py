from __future__ import annotations
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

# R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
_EULER_SEQ = "xyz"


def _as_vec3(value, name: str) -> np.ndarray:
    v = np.asarray(value, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {v.shape}")
    if not np.all(np.isfinite(v)):
        raise ValueError(f"{name} must be finite")
    return v.copy()


def _as_rotation(value) -> Rotation:
    if not isinstance(value, Rotation) or not value.single:
        raise ValueError("rotation must be a single scipy Rotation")
    return value


class RigidTransform:
    """
    Rotation + translation mapping a grid's local space to world space.

    The rotation is kept as a unit quaternion (scipy Rotation); Euler angles are
    only a view on it, so reading and writing them back never accumulates drift.
    """

    __slots__ = ("_rotation", "_translation")

    def __init__(
        self,
        rotation: Optional[Rotation] = None,
        translation: Optional[Sequence[float]] = None,
    ):
        self._rotation = Rotation.identity() if rotation is None else _as_rotation(rotation)
        self._translation = np.zeros(3) if translation is None else _as_vec3(translation, "translation")

    @classmethod
    def identity(cls) -> RigidTransform:
        return cls()

    @classmethod
    def from_euler(
        cls,
        roll: float,
        pitch: float,
        yaw: float,
        *,
        translation: Optional[Sequence[float]] = None,
    ) -> RigidTransform:
        return cls(Rotation.from_euler(_EULER_SEQ, [roll, pitch, yaw]), translation)

    # ----- accessors -----

    @property
    def rotation(self) -> Rotation:
        return self._rotation

    @rotation.setter
    def rotation(self, value: Rotation) -> None:
        self._rotation = _as_rotation(value)

    @property
    def translation(self) -> np.ndarray:
        return self._translation.copy()

    @translation.setter
    def translation(self, value: Sequence[float]) -> None:
        self._translation = _as_vec3(value, "translation")

    def set_translation(self, x: float, y: float, z: float) -> None:
        self._translation = _as_vec3((x, y, z), "translation")

    def translate(self, offset: Sequence[float]) -> None:
        self._translation = self._translation + _as_vec3(offset, "offset")

    @property
    def quaternion(self) -> np.ndarray:
        """(x, y, z, w)"""
        return self._rotation.as_quat()

    @property
    def euler(self) -> Tuple[float, float, float]:
        """(roll, pitch, yaw) in radians."""
        roll, pitch, yaw = self._rotation.as_euler(_EULER_SEQ)
        return float(roll), float(pitch), float(yaw)

    def set_euler(self, roll: float, pitch: float, yaw: float) -> None:
        angles = np.asarray([roll, pitch, yaw], dtype=np.float64)
        if not np.all(np.isfinite(angles)):
            raise ValueError("Euler angles must be finite")
        self._rotation = Rotation.from_euler(_EULER_SEQ, angles)

    # ----- application -----

    def apply(self, points) -> np.ndarray:
        p = np.asarray(points, dtype=np.float64)
        return self._rotation.apply(p) + self._translation

    def apply_inverse(self, points) -> np.ndarray:
        p = np.asarray(points, dtype=np.float64)
        return self._rotation.inv().apply(p - self._translation)

    def inverse(self) -> RigidTransform:
        inv = self._rotation.inv()
        return RigidTransform(inv, -inv.apply(self._translation))

    def __mul__(self, other: RigidTransform) -> RigidTransform:
        if not isinstance(other, RigidTransform):
            return NotImplemented
        return RigidTransform(
            self._rotation * other._rotation,
            self.apply(other._translation),
        )

    def copy(self) -> RigidTransform:
        return RigidTransform(Rotation.from_quat(self._rotation.as_quat()), self._translation)

    def matrix(self, scale: Optional[Sequence[float]] = None) -> np.ndarray:
        """
        4x4 homogeneous matrix. `scale` (scalar or 3-vector) is applied in local
        space first, which is how a bounding box of given extents is displayed.
        """
        m = np.eye(4)
        rot = self._rotation.as_matrix()
        if scale is not None:
            rot = rot * np.broadcast_to(np.asarray(scale, dtype=np.float64), (3,))[None, :]
        m[:3, :3] = rot
        m[:3, 3] = self._translation
        return m

    def isclose(self, other: RigidTransform, *, atol: float = 1e-9) -> bool:
        return bool(
            np.allclose(self._translation, other._translation, atol=atol)
            and self._rotation.approx_equal(other._rotation, atol=atol)
        )

    def __repr__(self) -> str:
        t = ", ".join(f"{v:.4g}" for v in self._translation)
        q = ", ".join(f"{v:.4g}" for v in self.quaternion)
        return f"RigidTransform(translation=({t}), quaternion=({q}))"
