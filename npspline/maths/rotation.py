# npspline/maths/rotation.py
# MIT License
# Created on 2022-11-11
# Last update: 2026-10-18
# Author: Alain Bernard

"""
Rotation
========

Rotation class based on 3×3 orthogonal matrices (SO(3)) with batch support.

The spline frame convention is Y up, Z forward: `look_rotation(forward, up)`
returns the rotation sending +Z onto `forward` and +Y onto the part of `up`
which is orthogonal to `forward`.

Example:

    >>> R = Rotation.from_axis_angle([0, 1, 0], np.pi / 2)
    >>> R @ np.array([0., 0., 1.])
    array([1., 0., 0.])
"""

import numpy as np

from ..constants import ZERO
from .itemsarray import ItemsArray


# ====================================================================================================
# Rotation
# ====================================================================================================

class Rotation(ItemsArray):
    """
    Rotation represented as 3×3 matrices.

    `R @ S` composes (S is applied first), `R @ v` rotates vectors and
    `~R` is the inverse rotation.
    """

    _item_shape = (3, 3)

    # ====================================================================================================
    # Constructors
    # ====================================================================================================

    @classmethod
    def _convert(cls, rot):
        """Convert any Rotation to the class representation."""
        return rot.as_matrix()

    @classmethod
    def identity(cls, shape=()):
        """Identity rotation for the given batch shape."""
        mat = np.broadcast_to(np.eye(3, dtype=cls.FLOAT), shape + (3, 3)).copy()
        return cls._convert(Rotation(mat, copy=False))

    # ----------------------------------------------------------------------------------------------------
    # From quaternion
    # ----------------------------------------------------------------------------------------------------

    @classmethod
    def from_quaternion(cls, quat, *, normalize: bool = True, tol: float = 1e-5):
        """
        Construct a Rotation from quaternions (x, y, z, w convention).

        Parameters
        ----------
        quat : array_like (..., 4)
            Input quaternions.
        normalize : bool, default True
            Normalize the input, otherwise check that it is unit within `tol`.
        """
        quat = np.asarray(quat, dtype=cls.FLOAT)

        if quat.shape[-1] != 4:
            raise ValueError(f"{cls.__name__}> Quaternions must have shape (..., 4), not {quat.shape}")

        norms = np.linalg.norm(quat, axis=-1, keepdims=True)
        if normalize:
            quat = quat / norms
        elif np.any(np.abs(norms - 1.0) > tol):
            raise ValueError(f"{cls.__name__}> Quaternion norms not within tolerance of 1.0")

        x, y, z, w = quat[..., 0], quat[..., 1], quat[..., 2], quat[..., 3]

        xx, yy, zz = x * x, y * y, z * z
        xy, xz, yz = x * y, x * z, y * z
        xw, yw, zw = x * w, y * w, z * w

        mat = np.empty(quat.shape[:-1] + (3, 3), dtype=cls.FLOAT)

        mat[..., 0, 0] = 1 - 2 * (yy + zz)
        mat[..., 0, 1] = 2 * (xy - zw)
        mat[..., 0, 2] = 2 * (xz + yw)

        mat[..., 1, 0] = 2 * (xy + zw)
        mat[..., 1, 1] = 1 - 2 * (xx + zz)
        mat[..., 1, 2] = 2 * (yz - xw)

        mat[..., 2, 0] = 2 * (xz - yw)
        mat[..., 2, 1] = 2 * (yz + xw)
        mat[..., 2, 2] = 1 - 2 * (xx + yy)

        return cls._convert(Rotation(mat, copy=False))

    # ----------------------------------------------------------------------------------------------------
    # From axis angle
    # ----------------------------------------------------------------------------------------------------

    @classmethod
    def from_axis_angle(cls, axis, angle, *, degrees: bool = False):
        """
        Construct a Rotation from an axis–angle pair.

        Parameters
        ----------
        axis : array_like (..., 3)
            Rotation axis, normalized internally.
        angle : array_like (...,)
            Rotation angle, right-hand rule.
        degrees : bool, default False
            Interpret `angle` in degrees.
        """
        axis = np.asarray(axis, dtype=cls.FLOAT)
        angle = np.asarray(angle, dtype=cls.FLOAT)

        if axis.shape[-1] != 3:
            raise ValueError(f"{cls.__name__}> Axis must have shape (..., 3), not {axis.shape}")

        if degrees:
            angle = np.deg2rad(angle)

        axis = axis / np.linalg.norm(axis, axis=-1, keepdims=True)
        half = 0.5 * angle

        axis, half = np.broadcast_arrays(axis, half[..., None])
        q = np.empty(axis.shape[:-1] + (4,), dtype=cls.FLOAT)
        q[..., :3] = np.sin(half) * axis
        q[..., 3]  = np.cos(half[..., 0])

        return cls.from_quaternion(q, normalize=False, tol=1e-3)

    # ----------------------------------------------------------------------------------------------------
    # From vectors
    # ----------------------------------------------------------------------------------------------------

    @classmethod
    def from_vectors(cls, v_src, v_dst):
        """
        Shortest arc rotation turning `v_src` onto `v_dst`.

        Opposite vectors give a half turn around an arbitrary perpendicular axis.

        Parameters
        ----------
        v_src : array_like (..., 3)
        v_dst : array_like (..., 3)
        """
        v_src = np.asarray(v_src, dtype=cls.FLOAT)
        v_dst = np.asarray(v_dst, dtype=cls.FLOAT)
        v_src, v_dst = np.broadcast_arrays(v_src, v_dst)

        v_src = v_src / np.linalg.norm(v_src, axis=-1, keepdims=True)
        v_dst = v_dst / np.linalg.norm(v_dst, axis=-1, keepdims=True)

        dot = np.einsum('...i,...i->...', v_src, v_dst)
        axis = np.cross(v_src, v_dst)
        w = 1.0 + dot

        # Half turn: any axis perpendicular to v_src
        opposite = w < 1e-6
        if np.any(opposite):
            ortho = np.cross(v_src, (1., 0., 0.))
            ortho_alt = np.cross(v_src, (0., 1., 0.))
            ortho = np.where(np.linalg.norm(ortho, axis=-1, keepdims=True) < 1e-6, ortho_alt, ortho)
            ortho = ortho / np.linalg.norm(ortho, axis=-1, keepdims=True)
            axis = np.where(opposite[..., None], ortho, axis)
            w = np.where(opposite, 0.0, w)

        q = np.concatenate([axis, w[..., None]], axis=-1)
        return cls.from_quaternion(q)

    # ----------------------------------------------------------------------------------------------------
    # Look rotation
    # ----------------------------------------------------------------------------------------------------

    @classmethod
    def look_rotation(cls, forward, up=(0., 1., 0.)):
        """
        Rotation sending +Z onto `forward` and +Y onto `up`.

        `up` doesn't need to be perpendicular to `forward`: only its component
        orthogonal to `forward` is kept. A null forward gives the identity;
        an up vector parallel to forward falls back to `from_vectors`.

        Parameters
        ----------
        forward : array_like (..., 3)
        up : array_like (..., 3), default (0, 1, 0)
        """
        forward = np.asarray(forward, dtype=cls.FLOAT)
        up = np.asarray(up, dtype=cls.FLOAT)
        forward, up = np.broadcast_arrays(forward, up)

        shape = forward.shape[:-1]
        forward = forward.reshape(-1, 3)
        up = up.reshape(-1, 3)

        mat = np.broadcast_to(np.eye(3, dtype=cls.FLOAT), forward.shape[:-1] + (3, 3)).copy()

        f_norm = np.linalg.norm(forward, axis=-1)
        valid = f_norm > ZERO
        f = forward[valid] / f_norm[valid, None]

        right = np.cross(up[valid], f)
        r_norm = np.linalg.norm(right, axis=-1)
        parallel = r_norm <= ZERO
        r_norm[parallel] = 1.0
        right = right / r_norm[:, None]
        new_up = np.cross(f, right)

        mat[valid] = np.stack((right, new_up, f), axis=-1)

        if np.any(parallel):
            fallback = Rotation.from_vectors((0., 0., 1.), f[parallel]).as_array()
            sub = mat[valid]
            sub[parallel] = fallback
            mat[valid] = sub

        return cls._convert(Rotation(mat.reshape(shape + (3, 3)), copy=False))

    # ====================================================================================================
    # Conversions
    # ====================================================================================================

    def as_matrix(self) -> "Rotation":
        """Return the rotation as matrices (self, no copy)."""
        return self

    def as_quaternion(self) -> "Quaternion":
        """
        Convert each rotation matrix to a quaternion (xyzw convention).

        Returns
        -------
        Quaternion
            Quaternions of shape (..., 4).
        """
        from .quaternion import Quaternion

        shape = self.shape
        R = self._mat.reshape(-1, 3, 3)

        m00, m01, m02 = R[:, 0, 0], R[:, 0, 1], R[:, 0, 2]
        m10, m11, m12 = R[:, 1, 0], R[:, 1, 1], R[:, 1, 2]
        m20, m21, m22 = R[:, 2, 0], R[:, 2, 1], R[:, 2, 2]

        trace = m00 + m11 + m22
        q = np.empty((len(R), 4), dtype=self.FLOAT)

        # The largest diagonal term drives the formula
        c1 = trace > 0.0
        c2 = ~c1 & (m00 >= m11) & (m00 >= m22)
        c3 = ~c1 & ~c2 & (m11 >= m22)
        c4 = ~(c1 | c2 | c3)

        s = np.sqrt(np.maximum(1.0 + trace[c1], 0.0)) * 2
        q[c1] = np.stack([(m21 - m12)[c1] / s, (m02 - m20)[c1] / s, (m10 - m01)[c1] / s, 0.25 * s], axis=-1)

        s = np.sqrt(np.maximum(1.0 + m00 - m11 - m22, 0.0)[c2]) * 2
        q[c2] = np.stack([0.25 * s, (m01 + m10)[c2] / s, (m02 + m20)[c2] / s, (m21 - m12)[c2] / s], axis=-1)

        s = np.sqrt(np.maximum(1.0 + m11 - m00 - m22, 0.0)[c3]) * 2
        q[c3] = np.stack([(m01 + m10)[c3] / s, 0.25 * s, (m12 + m21)[c3] / s, (m02 - m20)[c3] / s], axis=-1)

        s = np.sqrt(np.maximum(1.0 + m22 - m00 - m11, 0.0)[c4]) * 2
        q[c4] = np.stack([(m02 + m20)[c4] / s, (m12 + m21)[c4] / s, 0.25 * s, (m10 - m01)[c4] / s], axis=-1)

        q /= np.linalg.norm(q, axis=-1, keepdims=True)

        return Quaternion(q.reshape(shape + (4,)), copy=False)

    # ====================================================================================================
    # Operations
    # ====================================================================================================

    def apply(self, vectors) -> np.ndarray:
        """
        Rotate 3D vectors.

        Parameters
        ----------
        vectors : array_like (..., 3)
            Vectors broadcastable with the rotation batch shape.

        Returns
        -------
        np.ndarray
            Rotated vectors.
        """
        vectors = np.asarray(vectors, dtype=self.FLOAT)
        if vectors.shape[-1] != 3:
            raise ValueError(f"{type(self).__name__}> Input must have shape (..., 3), not {vectors.shape}")
        return np.einsum('...ij,...j->...i', self._mat, vectors)

    def compose(self, other: "Rotation") -> "Rotation":
        """
        Compose with another rotation.

        The result applies `other` first, then `self`:

            (self @ other) @ v == self @ (other @ v)
        """
        if not isinstance(other, Rotation):
            raise TypeError(f"{type(self).__name__}> Expected a Rotation, got {type(other).__name__}")

        return type(self)(self._mat @ other.as_matrix()._mat, copy=False)

    def inverse(self) -> "Rotation":
        """Inverse rotation (transposed matrices)."""
        return type(self)(np.swapaxes(self._mat, -1, -2), copy=False)

    def is_identity(self, tol: float = 1e-6):
        """
        Test whether each rotation is (numerically) the identity.

        Returns a bool for a single rotation, a boolean array otherwise.
        """
        err = np.abs(self.as_matrix()._mat - np.eye(3)).max(axis=(-2, -1))
        result = err < tol
        return bool(result) if result.shape == () else result

    def angle_to(self, other: "Rotation", degrees: bool = False) -> np.ndarray:
        """
        Angle of the rotation turning `self` into `other`.
        """
        if not isinstance(other, Rotation):
            raise TypeError(f"{type(self).__name__}> Expected Rotation, got {type(other).__name__}")

        delta = other.as_matrix() @ self.as_matrix().inverse()
        trace = np.clip(np.trace(delta._mat, axis1=-2, axis2=-1), -1.0, 3.0)
        theta = np.arccos(np.clip((trace - 1.0) / 2.0, -1.0, 1.0))

        if degrees:
            theta = np.rad2deg(theta)
        return theta

    # ----------------------------------------------------------------------------------------------------
    # Operators
    # ----------------------------------------------------------------------------------------------------

    def __matmul__(self, other):
        """
        `R @ S` composes two rotations, `R @ v` rotates vectors of shape (..., 3).
        """
        if isinstance(other, Rotation):
            return self.compose(other)
        elif isinstance(other, (np.ndarray, list, tuple)):
            return self.apply(other)
        else:
            raise TypeError(
                f"{type(self).__name__}: unsupported operand type for @: "
                f"{type(other).__name__}"
            )

    def __invert__(self) -> "Rotation":
        return self.inverse()

    # ====================================================================================================
    # Interpolation
    # ====================================================================================================

    def interpolate(self, other, t):
        """
        Spherical linear interpolation (SLERP) between two rotations.

        Parameters
        ----------
        other : Rotation
            Target rotation, reached for t = 1.
        t : float or ndarray
            Interpolation factor(s), broadcasted with the batch shape.

        Returns
        -------
        Quaternion
            Interpolated rotations.
        """
        from .quaternion import Quaternion

        q1 = self.as_quaternion().as_array()
        q2 = other.as_quaternion().as_array()

        # Shortest path
        dot = np.sum(q1 * q2, axis=-1, keepdims=True)
        q2 = np.where(dot < 0, -q2, q2)
        dot = np.clip(np.abs(dot), 0.0, 1.0)

        theta = np.arccos(dot)
        sin_theta = np.sin(theta)

        t = np.asarray(t, dtype=self.FLOAT)[..., None]

        small = sin_theta < 1e-6
        safe_sin = np.where(small, 1.0, sin_theta)
        w1 = np.where(small, 1.0 - t, np.sin((1.0 - t) * theta) / safe_sin)
        w2 = np.where(small, t, np.sin(t * theta) / safe_sin)

        q = w1 * q1 + w2 * q2
        q /= np.linalg.norm(q, axis=-1, keepdims=True)
        return Quaternion(q, copy=False)
