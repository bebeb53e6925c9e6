# npspline/maths/transformation.py
# MIT License
# Created on 2022-11-11
# Last update: 2026-10-18
# Author: Alain Bernard

"""
Transformation
==============

Position, rotation and scale of the frame containing a spline set.

Splines are stored in local coordinates. The caller supplies the frame of the
object holding them, and the set converts positions and directions from and
to world space:

    >>> frame = Transformation(position=(10, 0, 0))
    >>> frame.transform_point((1, 2, 3))
    array([11.,  2.,  3.])
"""

import numpy as np

from ..constants import bfloat
from .rotation import Rotation
from .quaternion import Quaternion

# =============================================================================================================================
# Transformation

class Transformation:
    def __init__(self, position=None, rotation=None, scale=None):
        """ Transformation of a containing frame.

        Scale is applied first, then rotation, then translation.

        Arguments
        ---------
            - position (vector = None) : the translation part
            - rotation (Rotation or euler angles in radians = None) : the rotation part
            - scale (vector or float = None) : the scale part
        """

        if scale is not None and np.shape(scale) == ():
            scale = (scale, scale, scale)

        if rotation is None:
            rotation = Quaternion.identity()
        elif isinstance(rotation, Rotation):
            rotation = rotation.as_quaternion()
        else:
            rotation = Quaternion.from_euler(rotation)

        self.position = np.zeros(3, dtype=bfloat) if position is None else np.array(position, dtype=bfloat)
        self.scale    = np.ones(3, dtype=bfloat) if scale is None else np.array(scale, dtype=bfloat)
        self.rotation = rotation

        if self.position.shape != (3,) or self.scale.shape != (3,):
            raise ValueError(f"Transformation> position and scale must be vectors, not {self.position.shape} and {self.scale.shape}")
        if np.any(np.abs(self.scale) < 1e-12):
            raise ValueError(f"Transformation> scale can't have null components: {self.scale}")

    def __str__(self):
        return f"<Transformation: position: {self.position}, rotation: {self.rotation.as_array()}, scale: {self.scale}>"

    # =============================================================================================================================
    # Points

    def transform_point(self, v):
        """ Local to world position.
        """
        return self.position + self.rotation @ (np.asarray(v, dtype=bfloat)*self.scale)

    def inverse_transform_point(self, v):
        """ World to local position.
        """
        return (~self.rotation @ (np.asarray(v, dtype=bfloat) - self.position))/self.scale

    # =============================================================================================================================
    # Directions are not scaled

    def transform_direction(self, v):
        return self.rotation @ np.asarray(v, dtype=bfloat)

    def inverse_transform_direction(self, v):
        return ~self.rotation @ np.asarray(v, dtype=bfloat)

    # =============================================================================================================================
    # Rotations

    def transform_rotation(self, rotation):
        return self.rotation @ rotation

    def inverse_transform_rotation(self, rotation):
        return ~self.rotation @ rotation
