# npspline/maths/utils.py
# MIT License
# Created on 2022-11-11
# Last update: 2026-10-18
# Author: Alain Bernard

import numpy as np

from ..constants import bfloat, ZERO, FORWARD, UP

# ====================================================================================================
# Normalize axis
# ====================================================================================================

AXES = {
    'X' : ( 1.,  0.,  0.), '+X': ( 1.,  0.,  0.), 'POS_X': ( 1.,  0.,  0.), '-X': (-1.,  0.,  0.), 'NEG_X': (-1.,  0.,  0.),
    'Y' : ( 0.,  1.,  0.), '+Y': ( 0.,  1.,  0.), 'POS_Y': ( 0.,  1.,  0.), '-Y': ( 0., -1.,  0.), 'NEG_Y': ( 0., -1.,  0.),
    'Z' : ( 0.,  0.,  1.), '+Z': ( 0.,  0.,  1.), 'POS_Z': ( 0.,  0.,  1.), '-Z': ( 0.,  0., -1.), 'NEG_Z': ( 0.,  0., -1.),
    }

def get_axis(v, null=FORWARD):
    """ Normalize a vector or an array of vectors.

    The vector can be specified as a string naming an axis : 'x', '-z', ...

    Arguments
    ---------
        - v (vector or array of vectors or str) : the vector to normalize
        - null (vector=(0, 0, 1)) : value to set to null vectors

    Returns
    -------
        - normalized vector(s), vector norm(s)
    """

    if isinstance(v, str):
        axis = AXES.get(v.upper())
        if axis is None:
            raise ValueError(f"get_axis> Unknown axis spec: '{v}'")
        return np.array(axis, dtype=bfloat), np.array(1., dtype=bfloat)

    vectors = np.asarray(v, dtype=bfloat)
    VNull = np.asarray(null, dtype=bfloat)

    if vectors.shape[-1] != 3 or VNull.shape != (3,):
        raise ValueError("get_axis> vectors must have shape (..., 3) and null must have shape (3,)")

    norms = np.linalg.norm(vectors, axis=-1, keepdims=True)
    is_zero = norms[..., 0] < ZERO

    # Avoid division by zero warnings
    safe = np.where(norms < ZERO, 1., norms)

    normalized = np.where(is_zero[..., None], VNull, vectors / safe)

    return normalized, norms[..., 0]

# ====================================================================================================
# Plane projection
# ====================================================================================================

def project_on_plane(v, normal):
    """ Remove from v its component along normal.

    Arguments
    ---------
        - v (vector or array of vectors) : vectors to project
        - normal (vector or array of vectors) : plane normal, doesn't need to be normalized

    Returns
    -------
        - projected vectors, v itself where the normal is null
    """
    v = np.asarray(v, dtype=bfloat)
    n, norm = get_axis(normal)
    dot = np.einsum('...i,...i->...', v, n)
    dot = np.where(norm < ZERO, 0., dot)
    return v - dot[..., None]*n

def angle_between(a, b, degrees=False):
    """ Unsigned angle between two vectors, 0 if one of them is null.
    """
    a, na = get_axis(a)
    b, nb = get_axis(b)
    angle = np.arccos(np.clip(np.einsum('...i,...i->...', a, b), -1., 1.))
    angle = np.where((na < ZERO) | (nb < ZERO), 0., angle)
    if degrees:
        angle = np.degrees(angle)
    return angle

# ====================================================================================================
# Spline euler angles
# ====================================================================================================

def spline_euler_angles(forward, up, degrees=False):
    """ Euler angles of a spline frame: yaw around Y, pitch around X, roll around Z.

    Yaw is the heading in the horizontal plane, pitch is the climb (negative
    when going up) and roll is the banking of `up` relative to the up vector
    the frame would have without roll.

    Arguments
    ---------
        - forward (vector) : direction of the curve
        - up (vector) : up vector of the frame
        - degrees (bool = False) : return angles in degrees

    Returns
    -------
        - array (pitch, yaw, roll)
    """
    forward = np.asarray(forward, dtype=bfloat)
    up = np.asarray(up, dtype=bfloat)

    yaw = np.arctan2(forward[0], forward[2])

    xz = np.array((forward[0], 0., forward[2]), dtype=bfloat)
    pitch = -np.arctan2(forward[1], np.linalg.norm(xz))

    perpendicular = np.cross(UP, xz)
    if np.linalg.norm(perpendicular) < ZERO:
        roll = 0.
    else:
        normal = np.cross(forward, perpendicular)
        roll = angle_between(normal, up)
        if angle_between(perpendicular, up) < np.pi/2:
            roll = -roll

    euler = np.array((pitch, yaw, roll), dtype=bfloat)
    if degrees:
        euler = np.degrees(euler)
    return euler
