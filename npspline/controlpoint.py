# =============================================================================
#  npspline.controlpoint
# -----------------------------------------------------------------------------
#  Part of the npspline package
#
#  License: MIT
#  Created: 11/11/2022
#  Last updated: 18/10/2026
#  Author: Alain Bernard
# =============================================================================

"""
ControlPoint
============

A control point of a bezier spline: one anchor the curve passes through, two
handles controlling the tangents on both sides, and an up vector giving the
roll of the frame at this point.

Handles are stored relative to the anchor:
- handle 0 : incoming (back) handle
- handle 1 : outgoing (forward) handle

The handle mode couples the two handles each time one of them is edited:
- FREE : handles are independent
- ALIGNED : handles point in opposite directions, with their own lengths
- MIRRORED : handles are exactly opposite

A handle is never shorter than `MIN_MAGNITUDE`: a null tangent would make
the curve frame undefined.
"""

from itertools import count

import numpy as np

from .constants import bfloat, ZERO, MIN_HANDLE_MAGNITUDE, FORWARD, BACK, UP, HandleMode
from .errors import IndexOutOfRange, MalformedPersistedState
from .maths import Quaternion, Rotation, get_axis, spline_euler_angles

# Stable identities shared by all the control points of the session
_uids = count()

def _vector(v, name="vector"):
    a = np.array(v, dtype=bfloat)
    if a.shape != (3,):
        raise ValueError(f"ControlPoint> {name} must be a 3D vector, not {a.shape}")
    return a

# ====================================================================================================
# Control Point
# ====================================================================================================

class ControlPoint:

    MIN_MAGNITUDE = MIN_HANDLE_MAGNITUDE

    def __init__(self, position=(0., 0., 0.), forward=FORWARD, up=UP, mode=HandleMode.MIRRORED):
        """ A control point located at position, with handles along forward.

        The handles are set to -forward/2 and forward/2.

        Arguments
        ---------
            - position (vector = (0, 0, 0)) : anchor position
            - forward (vector = (0, 0, 1)) : tangent at the anchor
            - up (vector = (0, 1, 0)) : up vector
            - mode (HandleMode = MIRRORED) : handle mode
        """
        forward = _vector(forward, "forward")

        self._anchor  = _vector(position, "position")
        self._handles = np.zeros((2, 3), dtype=bfloat)
        self._up      = _vector(up, "up")
        self._mode    = HandleMode(mode)

        self._handles[0] = self._clamped(0, -.5*forward)
        self._handles[1] = self._clamped(1, .5*forward)

        # Junction the point belongs to, managed by the JunctionGraph
        self.group = None
        self.uid = next(_uids)

    def __str__(self):
        group = "" if self.group is None else f", junction {self.group}"
        return f"<ControlPoint #{self.uid} {self.mode}: {self._anchor}, handles: {self._handles[0]}, {self._handles[1]}{group}>"

    def __repr__(self):
        return str(self)

    def copy(self):
        """ Copy with a new identity and no junction.
        """
        cp = ControlPoint(self._anchor, up=self._up, mode=self._mode)
        cp._handles[:] = self._handles
        return cp

    # ====================================================================================================
    # Helpers
    # ====================================================================================================

    @staticmethod
    def _check_index(index):
        if index not in (0, 1) or isinstance(index, bool):
            raise IndexOutOfRange(f"ControlPoint> handle index must be 0 or 1, not {index}")

    def _clamped(self, index, v):
        """ Ensure a handle is not shorter than MIN_MAGNITUDE.

        A short handle keeps its direction, a null one takes the direction of
        the current handle.
        """
        norm = np.linalg.norm(v)
        if norm >= self.MIN_MAGNITUDE:
            return v

        if norm > ZERO:
            direction = v/norm
        else:
            default = BACK if index == 0 else FORWARD
            direction, _ = get_axis(self._handles[index], null=default)

        return direction*self.MIN_MAGNITUDE

    def _couple(self, index):
        """ Apply the mode rule to the opposite handle of index.
        """
        other = 1 - index
        if self._mode == HandleMode.ALIGNED:
            direction, _ = get_axis(-self._handles[index])
            self._handles[other] = direction*np.linalg.norm(self._handles[other])
        elif self._mode == HandleMode.MIRRORED:
            self._handles[other] = -self._handles[index]

    # ====================================================================================================
    # Anchor
    # ====================================================================================================

    @property
    def anchor(self):
        return self._anchor.copy()

    def set_anchor(self, position):
        self._anchor = _vector(position, "position")

    # ====================================================================================================
    # Handles
    # ====================================================================================================

    @property
    def handles(self):
        """ Relative handles, array of shape (2, 3).
        """
        return self._handles.copy()

    def get_relative_handle(self, index):
        self._check_index(index)
        return self._handles[index].copy()

    def set_relative_handle(self, index, v):
        """ Set a handle relative to the anchor, the other one follows the mode.

        Arguments
        ---------
            - index (int) : handle index (0 : back, 1 : forward)
            - v (vector) : handle relative to the anchor
        """
        self._check_index(index)
        self._handles[index] = self._clamped(index, _vector(v, "handle"))
        self._couple(index)

    def get_handle(self, index):
        """ Handle position : anchor + relative handle.
        """
        self._check_index(index)
        return self._anchor + self._handles[index]

    def set_handle(self, index, position):
        self.set_relative_handle(index, _vector(position, "position") - self._anchor)

    def get_handle_magnitude(self, index):
        self._check_index(index)
        return float(np.linalg.norm(self._handles[index]))

    def set_handle_magnitude(self, index, magnitude):
        """ Change the length of a handle, keeping its direction.

        The magnitude is clamped to MIN_MAGNITUDE. In MIRRORED mode, the other
        handle is mirrored.
        """
        self._check_index(index)
        magnitude = max(float(magnitude), self.MIN_MAGNITUDE)

        direction, _ = get_axis(self._handles[index], null=BACK if index == 0 else FORWARD)
        self._handles[index] = direction*magnitude

        if self._mode == HandleMode.MIRRORED:
            self._handles[1 - index] = -self._handles[index]

    def scale(self, scale):
        """ Scale both handles component-wise.

        Used to resize the junctions.
        """
        scale = _vector(scale, "scale")
        for index in (0, 1):
            self._handles[index] = self._clamped(index, self._handles[index]*scale)

    # ====================================================================================================
    # Mode
    # ====================================================================================================

    @property
    def mode(self):
        return self._mode

    def set_mode(self, mode):
        """ Change the mode and enforce it immediately on the back handle.
        """
        self._mode = HandleMode(mode)
        self._couple(1)

    # ====================================================================================================
    # Orientation
    # ====================================================================================================

    @property
    def up(self):
        return self._up.copy()

    def set_up(self, up):
        self._up = _vector(up, "up")

    def get_orientation(self):
        """ Rotation turning +Z onto the forward handle and +Y toward up.

        Returns
        -------
            - Quaternion
        """
        return Quaternion.look_rotation(self._handles[1], self._up)

    def set_orientation(self, rotation):
        """ Orient the handles and the up vector, keeping the handle lengths.

        Arguments
        ---------
            - rotation (Rotation) : new orientation
        """
        if not isinstance(rotation, Rotation):
            rotation = Quaternion.from_quaternion(rotation)
        q = rotation.as_quaternion()

        m0 = np.linalg.norm(self._handles[0])
        m1 = np.linalg.norm(self._handles[1])

        self._handles[0] = q @ BACK * m0
        self._handles[1] = q @ FORWARD * m1
        self._up = q @ UP

    def get_euler_angles(self, degrees=False):
        """ Euler angles (pitch, yaw, roll) of the point frame.
        """
        return spline_euler_angles(self._handles[1], self._up, degrees=degrees)

    # ====================================================================================================
    # State
    # ====================================================================================================

    def to_dict(self):
        return {
            'anchor'  : self._anchor.tolist(),
            'handles' : self._handles.tolist(),
            'up'      : self._up.tolist(),
            'mode'    : self._mode.label,
            'group'   : self.group,
            }

    @classmethod
    def from_dict(cls, data):
        """ Build a control point from its state dictionary.

        The group reference is restored as is: the caller is in charge of
        rebuilding the junction registry.

        Raises
        ------
            - MalformedPersistedState
        """
        try:
            anchor  = _vector(data['anchor'], "anchor")
            handles = np.array(data['handles'], dtype=bfloat)
            up      = _vector(data.get('up', UP), "up")
            mode    = HandleMode(data.get('mode', HandleMode.MIRRORED))
            group   = data.get('group')
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPersistedState(f"ControlPoint> invalid point state: {e}") from e

        if handles.shape != (2, 3):
            raise MalformedPersistedState(f"ControlPoint> handles must have shape (2, 3), not {handles.shape}")
        if group is not None and (isinstance(group, bool) or not isinstance(group, (int, np.integer)) or group < 0):
            raise MalformedPersistedState(f"ControlPoint> invalid group reference: {group!r}")

        cp = cls(anchor, up=up, mode=mode)
        for index in (0, 1):
            cp._handles[index] = cp._clamped(index, handles[index])
        cp.group = None if group is None else int(group)
        return cp
