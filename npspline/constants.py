# MIT License
#
# Copyright (c) 2025 Alain Bernard
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the \"Software\"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED \"AS IS\", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Module Name: constants
Author: Alain Bernard
Version: 0.1.0
Created: 2025-07-21
Last updated: 2026-10-18

Summary:
This module defines the core constants shared by the `npspline` package.

It includes:
  - the float dtype used by every vector, quaternion and arc-length table
  - the precision settings (minimum handle magnitude, arc-length table resolution)
  - the reference axes of the spline frame (Y up, Z forward)
  - the handle continuity modes and the structural events sent to listeners

Usage example:
    >>> from npspline.constants import bfloat, HandleMode
"""

__all__ = [
    'bfloat',
    'ZERO', 'MIN_HANDLE_MAGNITUDE', 'ARC_RESOLUTION',
    'FORWARD', 'BACK', 'UP', 'RIGHT',
    'CodeLabelEnum', 'HandleMode', 'SplineEvent',
    ]

import numpy as np
from enum import Enum

# =============================================================================================================================
# np.ndarray dtypes
# =============================================================================================================================

bfloat = np.float64

# =============================================================================================================================
# Precision
# =============================================================================================================================

# Below this norm a vector is considered as null
ZERO = 1e-8

# Handles are never shorter than this
MIN_HANDLE_MAGNITUDE = .01

# Number of arc-length samples per bezier curve
ARC_RESOLUTION = 100

# =============================================================================================================================
# Axes
# =============================================================================================================================

FORWARD = np.array((0., 0., 1.), dtype=bfloat)
BACK    = np.array((0., 0., -1.), dtype=bfloat)
UP      = np.array((0., 1., 0.), dtype=bfloat)
RIGHT   = np.array((1., 0., 0.), dtype=bfloat)

for _axis in (FORWARD, BACK, UP, RIGHT):
    _axis.flags.writeable = False

# =============================================================================================================================
# Enums
# =============================================================================================================================

class CodeLabelEnum(Enum):

    def __init__(self, code, label):
        self.code = code
        self.label = label

    def __str__(self):
        return self.label

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            for member in cls:
                if member.label == value.upper():
                    return member
        elif isinstance(value, (int, np.int32, np.int64)):
            for member in cls:
                if member.code == value:
                    return member

        raise ValueError(
            f"Invalid value for {cls.__name__!r} : {value!r}. "
            f"Authorized values are : {[m.label for m in cls]}"
            )

class HandleMode(CodeLabelEnum):
    FREE     = (0, 'FREE')
    ALIGNED  = (1, 'ALIGNED')
    MIRRORED = (2, 'MIRRORED')

class SplineEvent(CodeLabelEnum):
    POINT_ADDED      = (0, 'POINT_ADDED')
    POINT_REMOVED    = (1, 'POINT_REMOVED')
    SPLINE_ADDED     = (2, 'SPLINE_ADDED')
    SPLINE_REMOVED   = (3, 'SPLINE_REMOVED')
    SPLINE_CHANGED   = (4, 'SPLINE_CHANGED')
    SETTINGS_CHANGED = (5, 'SETTINGS_CHANGED')
    SPLINE_RENAMED   = (6, 'SPLINE_RENAMED')
