# =============================================================================
#  npspline.spline
# -----------------------------------------------------------------------------
#  Part of the npspline package
#
#  License: MIT
#  Created: 11/11/2022
#  Last updated: 18/10/2026
#  Author: Alain Bernard
# =============================================================================

"""
Spline
======

A chain of cubic bezier curves going through an ordered list of control points.

The curve between points i and i+1 is the bezier curve:

    (anchor_i, anchor_i + handle1_i, anchor_i+1 + handle0_i+1, anchor_i+1)

Two parameterizations are available:
- per curve : `get_curve_point(curve, t)` with t in [0, 1]
- uniform speed : `get_point(distance)` with distance in [0, arc length]

The uniform speed evaluation relies on an arc-length table: each curve is
sampled at `resolution + 1` regular values of t and the chord lengths are
accumulated. The table is rebuilt as a whole after every change of the points:
call `reset_arc_length_table` after editing a point directly.

Features:
- Uniform speed position, direction, up vector and orientation
- Point append, insertion (curve subdivision) and removal
- Opaque settings used by mesh generation and object placement
"""

import numpy as np

from .constants import bfloat, ZERO, ARC_RESOLUTION, FORWARD, UP, HandleMode
from .errors import IndexOutOfRange, DegenerateGeometry
from .controlpoint import ControlPoint
from .maths import (Quaternion, get_axis, spline_euler_angles,
    bezier_point, bezier_derivative, bezier_split)

# ====================================================================================================
# Spline
# ====================================================================================================

class Spline:

    RESOLUTION = ARC_RESOLUTION

    def __init__(self, position=FORWARD, index=0, *, name=None, points=None, resolution=None):
        """ A spline made of control points.

        By default, the spline is a straight line of length 1 starting at position.

        Arguments
        ---------
            - position (vector = (0, 0, 1)) : position of the first point of the default line
            - index (int = 0) : index of the spline in its set, used for the default name
            - name (str = None) : spline name, 'Spline_xx' by default
            - points (list of ControlPoints = None) : points to use rather than the default line
            - resolution (int = None) : number of arc-length samples per curve
        """
        if points is None:
            position = np.array(position, dtype=bfloat)
            points = [ControlPoint(position, FORWARD), ControlPoint(position + FORWARD, FORWARD)]

        self.points = list(points)
        self.name = f"Spline_{index:02d}" if name is None else str(name)

        self.resolution = self.RESOLUTION if resolution is None else int(resolution)
        if self.resolution < 1:
            raise ValueError(f"Spline> resolution must be at least 1, not {self.resolution}")

        # Opaque for the core, owned by the asset generation
        self._settings = None
        self.active_assets = None

        self._table = None
        self.reset_arc_length_table()

    @classmethod
    def from_positions(cls, positions, index=0, *, name=None, resolution=None):
        """ Spline going smoothly through a polyline.

        Handles are mirrored and computed from the neighbours:
        - ends : (p1 - p0)/3 and (pn - pn-1)/3
        - inner points : (p[i+1] - p[i-1])/6

        Arguments
        ---------
            - positions (array of vectors) : at least 2 positions
        """
        positions = np.asarray(positions, dtype=bfloat)
        if positions.ndim != 2 or positions.shape[-1] != 3 or len(positions) < 2:
            raise ValueError(f"Spline.from_positions> expected at least 2 vectors, got shape {positions.shape}")

        handles = np.empty_like(positions)
        handles[0]    = (positions[1] - positions[0])/3
        handles[1:-1] = (positions[2:] - positions[:-2])/6
        handles[-1]   = (positions[-1] - positions[-2])/3

        points = [ControlPoint(p, 2*h) for p, h in zip(positions, handles)]
        return cls(index=index, name=name, points=points, resolution=resolution)

    def __str__(self):
        return f"<Spline '{self.name}': {self.point_count} points, length: {self.get_arc_length():.3f}>"

    def __repr__(self):
        return str(self)

    # ====================================================================================================
    # Points
    # ====================================================================================================

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, index):
        self._check_point_index(index)
        return self.points[index]

    @property
    def point_count(self):
        return len(self.points)

    @property
    def curve_count(self):
        return max(len(self.points) - 1, 0)

    @property
    def is_degenerate(self):
        return len(self.points) < 2

    def index(self, point):
        """ Index of a point in the spline, by identity.

        Returns
        -------
            - int or None if the point doesn't belong to the spline
        """
        for i, p in enumerate(self.points):
            if p is point:
                return i
        return None

    def _check_point_index(self, index):
        if isinstance(index, bool) or not (0 <= index < len(self.points)):
            raise IndexOutOfRange(f"Spline '{self.name}'> point index {index} out of range [0, {len(self.points)}[")

    def _check_curve_index(self, curve):
        if isinstance(curve, bool) or not (0 <= curve < self.curve_count):
            raise IndexOutOfRange(f"Spline '{self.name}'> curve index {curve} out of range [0, {self.curve_count}[")

    def _check_degenerate(self):
        if self.is_degenerate:
            raise DegenerateGeometry(f"Spline '{self.name}'> a spline needs at least 2 points, it has {len(self.points)}")

    # ====================================================================================================
    # Settings
    # ====================================================================================================

    @property
    def settings(self):
        return self._settings

    def set_settings(self, settings):
        """ Attach the settings of the asset generation.

        All the assets are activated. The number of assets is read from the
        `asset_count` attribute of the settings when it exists.
        """
        self._settings = settings
        asset_count = getattr(settings, 'asset_count', None)
        self.active_assets = None if asset_count is None else [True]*int(asset_count)

    # ====================================================================================================
    # Bezier curves
    # ====================================================================================================

    def _controls(self):
        """ Control points of all the curves.

        Returns
        -------
            - tuple of 4 arrays of shape (curve_count, 3)
        """
        self._check_degenerate()

        anchors = np.array([p.anchor for p in self.points], dtype=bfloat)
        handles = np.array([p.handles for p in self.points], dtype=bfloat)

        return anchors[:-1], anchors[:-1] + handles[:-1, 1], anchors[1:] + handles[1:, 0], anchors[1:]

    def get_curve_point(self, curve, t):
        """ Position on a curve at parameter t.

        Arguments
        ---------
            - curve (int) : curve index, from 0 to curve_count - 1
            - t (float or array of floats) : parameter in [0, 1]
        """
        self._check_curve_index(curve)
        return bezier_point(*(c[curve] for c in self._controls()), t)

    def get_curve_direction(self, curve, t):
        """ Derivative of a curve at parameter t.
        """
        self._check_curve_index(curve)
        return bezier_derivative(*(c[curve] for c in self._controls()), t)

    # ====================================================================================================
    # Arc length table
    # ====================================================================================================

    def reset_arc_length_table(self):
        """ Rebuild the arc-length table.

        The table has curve_count × resolution + 1 entries. Entry k is the
        length of the polyline sampling the spline from the start up to
        parameter k / resolution.
        """
        if self.is_degenerate:
            self._table = np.zeros(1, dtype=bfloat)
            return self

        t = np.linspace(0, 1, self.resolution + 1)
        samples = bezier_point(*self._controls(), t)                    # (S, R+1, 3)
        chords = np.linalg.norm(np.diff(samples, axis=1), axis=-1)      # (S, R)

        self._table = np.concatenate(([0.], np.cumsum(chords.ravel()))).astype(bfloat)
        return self

    @property
    def arc_length_table(self):
        return self._table.copy()

    def get_arc_length(self):
        """ Total length of the spline.
        """
        return float(self._table[-1])

    def get_arc_pos(self, distance):
        """ Spline parameter at a given distance from the start.

        The table entry just above the distance is looked for, then the parameter
        is linearly interpolated between this entry and the previous one.

        Arguments
        ---------
            - distance (float or array of floats) : distance along the spline

        Returns
        -------
            - curve index + local parameter, in [0, curve_count]
        """
        self._check_degenerate()

        table = self._table
        d = np.asarray(distance, dtype=bfloat)

        # First entry strictly greater than the distance
        i = np.searchsorted(table, d, side='right')

        i_safe = np.clip(i, 1, len(table) - 1)
        d0 = table[i_safe - 1]
        span = table[i_safe] - d0
        valid = span > ZERO
        frac = np.where(valid, (d - d0)/np.where(valid, span, 1.), 0.)

        pos = (i_safe - 1 + frac)/self.resolution
        pos = np.where(i >= len(table), self.curve_count, pos)
        pos = np.where(i == 0, 0., pos)

        return float(pos) if pos.shape == () else pos

    def _locate(self, distance):
        """ Curve index and local parameter at a distance.
        """
        pos = np.asarray(self.get_arc_pos(distance))

        curve = np.floor(pos).astype(int)
        t = pos - curve

        last = curve >= self.curve_count
        curve = np.where(last, self.curve_count - 1, curve)
        t = np.where(last, 1., t)

        return curve, t

    # ====================================================================================================
    # Uniform speed evaluation
    # ====================================================================================================

    def get_point(self, distance):
        """ Position at a distance from the start.

        Arguments
        ---------
            - distance (float or array of floats) : distance along the spline

        Returns
        -------
            - vector or array of vectors
        """
        curve, t = self._locate(distance)
        return bezier_point(*(c[curve] for c in self._controls()), t, pairwise=True)

    def get_direction(self, distance):
        """ Tangent at a distance from the start.

        The tangent is not normalized: its length is the speed of the curve.
        """
        curve, t = self._locate(distance)
        return bezier_derivative(*(c[curve] for c in self._controls()), t, pairwise=True)

    def _frame(self, distance):
        curve, t = self._locate(distance)
        direction = bezier_derivative(*(c[curve] for c in self._controls()), t, pairwise=True)

        rotations = Quaternion(np.array([p.get_orientation().as_array() for p in self.points]), copy=False)
        rotation = rotations[curve].interpolate(rotations[curve + 1], t)

        # Gram-Schmidt : look_rotation keeps the part of up orthogonal to direction
        frame = Quaternion.look_rotation(direction, rotation @ UP)

        return direction, frame

    def get_up(self, distance):
        """ Unit up vector at a distance from the start.

        The orientations of the two points surrounding the distance are
        interpolated, then the up axis is made perpendicular to the direction.
        """
        _, frame = self._frame(distance)
        return frame @ UP

    def get_orientation(self, distance):
        """ Orientation (Quaternion) of the curve frame at a distance from the start.
        """
        _, frame = self._frame(distance)
        return frame

    def get_euler_angles(self, distance, degrees=False):
        """ Euler angles (pitch, yaw, roll) of the curve frame at a distance from the start.
        """
        direction, frame = self._frame(distance)
        return spline_euler_angles(direction, frame @ UP, degrees=degrees)

    # ====================================================================================================
    # Edition
    # ====================================================================================================

    def append_point(self):
        """ Add a point after the last one.

        The new point is one unit ahead along the forward handle of the last
        point, with the same direction.

        Returns
        -------
            - ControlPoint : the new point
        """
        self._check_degenerate()

        last = self.points[-1]
        direction, _ = get_axis(last.get_relative_handle(1))

        point = ControlPoint(last.anchor + direction, .5*direction)
        self.points.append(point)

        self.reset_arc_length_table()
        return point

    def insert_point(self, index):
        """ Insert a point before the point at index.

        Index 0 places the new point one unit behind the first point, along
        its back handle.

        Otherwise, the new point splits the curve between points index-1 and
        index at t = 0.5: the two neighbours become ALIGNED and their handles
        toward the new point are halved, the new point takes the tangent of the
        curve at the split. Since a bezier curve split in two at t = 0.5 has
        exactly these control points (De Casteljau), the shape of the spline is
        preserved unless a neighbour had non collinear FREE handles.

        Arguments
        ---------
            - index (int) : index of the new point, from 0 to point_count

        Returns
        -------
            - ControlPoint : the new point
        """
        self._check_degenerate()

        if index == len(self.points):
            return self.append_point()

        self._check_point_index(index)

        if index == 0:
            first = self.points[0]
            back, _ = get_axis(first.get_relative_handle(0))
            forward, _ = get_axis(first.get_relative_handle(1))
            point = ControlPoint(first.anchor + back, .5*forward)

        else:
            prev_point = self.points[index - 1]
            next_point = self.points[index]

            (p0, a, d, m), (_, e, c, p3) = bezier_split(*(ctl[index - 1] for ctl in self._controls()), .5)

            up = prev_point.get_orientation().interpolate(next_point.get_orientation(), .5) @ UP
            point = ControlPoint(m, e - d, up=up)

            prev_point.set_mode(HandleMode.ALIGNED)
            prev_point.set_relative_handle(1, a - p0)
            next_point.set_mode(HandleMode.ALIGNED)
            next_point.set_relative_handle(0, c - p3)

        self.points.insert(index, point)

        self.reset_arc_length_table()
        return point

    def remove_point(self, point):
        """ Remove a point, by identity.

        Junction bookkeeping is the responsibility of the caller.
        """
        index = self.index(point)
        if index is None:
            raise ValueError(f"Spline '{self.name}'> {point} is not a point of this spline")

        del self.points[index]

        self.reset_arc_length_table()
        return index

    # ====================================================================================================
    # For tests : plot
    # ====================================================================================================

    def _plot(self, resolution=100, display_points='NO', label=None, ax=None, **kwargs):
        """
        Plot the spline projected on the horizontal plane (x, z) using matplotlib.

        Parameters:
            resolution (int): Number of points to evaluate the curve.
            display_points (str): One of 'NO', 'POINTS', 'HANDLES', 'ALL'
            label (str): Legend label for the spline.
            ax (matplotlib.axes.Axes): Optional matplotlib axis to draw on.
            **kwargs: Additional keyword arguments for `plot()`.
        """
        import matplotlib.pyplot as plt

        if ax is None:
            ax = plt.gca()

        curve = self.get_point(np.linspace(0, self.get_arc_length(), resolution))
        ax.plot(curve[:, 0], curve[:, 2], label=label or self.name, **kwargs)

        anchors = np.array([p.anchor for p in self.points])
        if display_points in {'POINTS', 'ALL'}:
            ax.scatter(anchors[:, 0], anchors[:, 2], c='red', s=40, label='Anchors')

        if display_points in {'HANDLES', 'ALL'}:
            backs = np.array([p.get_handle(0) for p in self.points])
            fwds = np.array([p.get_handle(1) for p in self.points])
            ax.scatter(backs[:, 0], backs[:, 2], c='blue', marker='v', label='Back Handles')
            ax.scatter(fwds[:, 0], fwds[:, 2], c='green', marker='^', label='Forward Handles')
            for a, b, f in zip(anchors, backs, fwds):
                ax.plot([b[0], a[0], f[0]], [b[2], a[2], f[2]], 'k--', lw=0.5)

        ax.axis('equal')
        return ax
