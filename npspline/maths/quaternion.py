# npspline/maths/quaternion.py
# MIT License
# Created on 2022-11-11
# Last update: 2026-10-18
# Author: Alain Bernard

"""
Quaternion
==========

Subclass of Rotation storing unit quaternions (xyzw convention).

Control point orientations are stored as quaternions: they compose with the
Hamilton product and interpolate with slerp without drifting away from SO(3).

All quaternion operations follow the right-hand rule and assume normalized inputs.
"""

import numpy as np

from .rotation import Rotation

class Quaternion(Rotation):
    """
    Quaternion representation of rotations (unit, xyzw convention).

    Internal shape: (..., 4)
    """

    _item_shape = (4,)

    # ----------------------------------------------------------------------------------------------------
    # Constructors
    # ----------------------------------------------------------------------------------------------------

    @classmethod
    def _convert(cls, rot):
        return rot.as_quaternion()

    @classmethod
    def from_quaternion(cls, quat, *, normalize: bool = True, tol: float = 1e-5) -> "Quaternion":
        """
        Construct a Quaternion from raw (x y z w) values.

        Parameters
        ----------
        quat : array_like (..., 4)
            Input quaternions in (x, y, z, w) order.
        normalize : bool, default True
            Renormalize the input to unit length.
        tol : float, default 1e-5
            Tolerance for the norm check when ``normalize=False``.

        Raises
        ------
        ValueError
            If shape is wrong or quaternions are not unit (when normalize=False).
        """
        quat = np.asarray(quat, dtype=cls.FLOAT)

        if quat.shape[-1] != 4:
            raise ValueError(f"{cls.__name__}> Quaternions must have shape (..., 4), not {quat.shape}")

        norms = np.linalg.norm(quat, axis=-1, keepdims=True)
        if normalize:
            quat = quat / norms
        elif np.any(np.abs(norms - 1.0) > tol):
            raise ValueError(f"{cls.__name__}> Quaternion norms not within tolerance of 1.0")

        return cls(quat, copy=False)

    @classmethod
    def from_euler(cls, euler, *, order: str = "XYZ", degrees: bool = False) -> "Quaternion":
        """
        Construct a Quaternion from Euler angles.

        Parameters
        ----------
        euler : array_like (..., 3)
            Angles for the three axes, in the order specified by `order`.
        order : {'XYZ', 'XZY', 'YXZ', 'YZX', 'ZXY', 'ZYX'}, default 'XYZ'
            Order in which the elementary rotations are applied.
        degrees : bool, default False
            Angles are given in degrees.
        """
        euler = np.asarray(euler, dtype=cls.FLOAT)
        if euler.shape[-1] != 3:
            raise ValueError(f"{cls.__name__}> Euler angles must have shape (..., 3), not {euler.shape}")

        if degrees:
            euler = np.deg2rad(euler)

        order = order.upper()
        if order not in {"XYZ", "XZY", "YXZ", "YZX", "ZXY", "ZYX"}:
            raise ValueError(f"{cls.__name__}> Unsupported Euler order '{order}'")

        def axis_quat(axis, angle):
            q = np.zeros(angle.shape + (4,), dtype=cls.FLOAT)
            q[..., axis] = np.sin(angle / 2)
            q[..., 3] = np.cos(angle / 2)
            return cls(q, copy=False)

        i0, i1, i2 = map("XYZ".index, order)
        q0 = axis_quat(i0, euler[..., 0])
        q1 = axis_quat(i1, euler[..., 1])
        q2 = axis_quat(i2, euler[..., 2])

        # First axis applied first
        return q2 @ (q1 @ q0)

    # ----------------------------------------------------------------------------------------------------
    # Conversion
    # ----------------------------------------------------------------------------------------------------

    def as_matrix(self) -> Rotation:
        """Convert each quaternion to a 3×3 rotation matrix."""
        return Rotation.from_quaternion(self._mat)

    def as_quaternion(self) -> "Quaternion":
        return self

    # ----------------------------------------------------------------------------------------------------
    # Overloads
    # ----------------------------------------------------------------------------------------------------

    def inverse(self) -> "Quaternion":
        """Inverse (conjugate) of the unit quaternion."""
        q = self._mat.copy()
        q[..., :3] *= -1
        return type(self)(q, copy=False)

    def compose(self, other: Rotation) -> "Quaternion":
        """
        Hamilton product with another rotation.

            (self @ other) @ v == self @ (other @ v)
        """
        if not isinstance(other, Rotation):
            raise TypeError(f"{type(self).__name__}> Expected Rotation, got {type(other).__name__}")

        q1 = self._mat
        q2 = other.as_quaternion()._mat

        x1, y1, z1, w1 = q1[..., 0], q1[..., 1], q1[..., 2], q1[..., 3]
        x2, y2, z2, w2 = q2[..., 0], q2[..., 1], q2[..., 2], q2[..., 3]

        x = w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2
        y = w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2
        z = w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2
        w = w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2

        q = np.stack([x, y, z, w], axis=-1)
        q /= np.linalg.norm(q, axis=-1, keepdims=True)

        return type(self)(q, copy=False)

    def apply(self, vectors) -> np.ndarray:
        """
        Rotate 3D vectors.

        Uses v' = v + 2 w (u × v) + 2 u × (u × v) with u the vector part,
        which is the expansion of q v q⁻¹.
        """
        vectors = np.asarray(vectors, dtype=self.FLOAT)
        if vectors.shape[-1] != 3:
            raise ValueError(f"{type(self).__name__}> Vectors must have shape (..., 3), not {vectors.shape}")

        q = self._mat
        u = q[..., :3]
        w = q[..., 3]

        uv = np.cross(u, vectors)
        uuv = np.cross(u, uv)

        return vectors + 2 * (w[..., None] * uv + uuv)

    def is_identity(self, tol: float = 1e-6):
        """Test whether each quaternion is (numerically) the identity rotation."""
        angle = 2 * np.arccos(np.clip(np.abs(self._mat[..., 3]), 0.0, 1.0))
        result = angle < tol
        return bool(result) if result.shape == () else result

    def angle_to(self, other: Rotation, degrees: bool = False) -> np.ndarray:
        """Angle of the rotation turning `self` into `other`."""
        if not isinstance(other, Rotation):
            raise TypeError(f"{type(self).__name__}> Expected Rotation, got {type(other).__name__}")

        dot = np.sum(self._mat * other.as_quaternion()._mat, axis=-1)
        angle = 2 * np.arccos(np.clip(np.abs(dot), 0.0, 1.0))

        if degrees:
            angle = np.rad2deg(angle)
        return angle
