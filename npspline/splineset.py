# =============================================================================
#  npspline.splineset
# -----------------------------------------------------------------------------
#  Part of the npspline package
#
#  License: MIT
#  Created: 11/11/2022
#  Last updated: 18/10/2026
#  Author: Alain Bernard
# =============================================================================

"""
SplineSet
=========

The set of splines edited together, with their junctions.

This is the interface used by the collaborators (mesh generation, object
placement, persistence). Points are addressed by (spline index, point index)
or by (spline index, distance along the spline).

Splines are stored in the local frame of the object holding them. When a
`transform` is given, positions, directions and rotations are read and written
in world space.

After each mutation, the arc-length tables and the junction registry are
consistent: collaborators can sample the splines right away. They are notified
of the changes through listeners:

    >>> def on_change(event, spline, **info):
    ...     print(event, spline, info)
    >>> splines = SplineSet()
    >>> splines.add_listener(on_change)
    >>> splines.append_point(0)
    POINT_ADDED 0 {'point': 2}

Addressing errors
-----------------
- junction queries return None and log a warning
- mutations are ignored, log a warning and return False (or None)
- geometry getters raise IndexOutOfRange
"""

import logging

import numpy as np

from .constants import SplineEvent
from .errors import IndexOutOfRange, JunctionConflict, MalformedPersistedState
from .controlpoint import ControlPoint
from .spline import Spline
from .junctions import JunctionGraph
from .maths import Rotation, Quaternion, spline_euler_angles

# ====================================================================================================
# Spline Set
# ====================================================================================================

class SplineSet:

    def __init__(self, transform=None, empty=False):
        """ A set of splines.

        Arguments
        ---------
            - transform (Transformation = None) : frame of the object holding the splines
            - empty (bool = False) : start without spline rather than with a default one
        """
        self.transform = transform
        self.splines   = []
        self.junctions = JunctionGraph(self._resolve)
        self.listeners = []
        self._uids     = None

        if not empty:
            self.splines.append(Spline(index=0))

    def __str__(self):
        return f"<SplineSet: {len(self.splines)} splines, {len(self.junctions.groups())} junctions>"

    def __repr__(self):
        return str(self)

    def __len__(self):
        return len(self.splines)

    def reset(self):
        """ Back to a single default spline.
        """
        for index in reversed(range(len(self.splines))):
            self._notify(SplineEvent.SPLINE_REMOVED, index)

        self.junctions.clear()
        self.splines = [Spline(index=0)]
        self._uids = None

        self._notify(SplineEvent.SPLINE_ADDED, 0)

    # ====================================================================================================
    # Addressing
    # ====================================================================================================

    def _resolve(self, uid):
        # The uid index is rebuilt after structural edits, or when a uid is missing
        if self._uids is None or uid not in self._uids:
            self._uids = {cp.uid: cp for sp in self.splines for cp in sp.points}

        point = self._uids.get(uid)
        if point is None:
            raise KeyError(f"SplineSet> no point with uid {uid}")
        return point

    def _spline(self, spline):
        if isinstance(spline, bool) or not isinstance(spline, (int, np.integer)) or not (0 <= spline < len(self.splines)):
            raise IndexOutOfRange(f"SplineSet> spline index {spline} out of range [0, {len(self.splines)}[")
        return self.splines[spline]

    def _point(self, spline, point):
        return self._spline(spline)[point]

    def _lookup(self, caller, spline, point=None):
        """ Spline or point at an address, None with a warning if it doesn't exist.
        """
        try:
            if point is None:
                return self._spline(spline)
            return self._point(spline, point)
        except IndexOutOfRange as e:
            logging.warning(f"SplineSet.{caller}> {e}")
            return None

    def find_point(self, point):
        """ Address (spline, point) of a control point, None if it isn't in the set.
        """
        for s, spline in enumerate(self.splines):
            p = spline.index(point)
            if p is not None:
                return s, p
        return None

    def _address(self, uid):
        return self.find_point(self._resolve(uid))

    # ====================================================================================================
    # Listeners
    # ====================================================================================================

    def add_listener(self, callback):
        """ Register a function called after each structural change.

        The callback is called with (event, spline_index, **info) where event
        is a SplineEvent.
        """
        if callback not in self.listeners:
            self.listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self.listeners:
            self.listeners.remove(callback)
            return True
        return False

    def _notify(self, event, spline, **info):
        for callback in list(self.listeners):
            callback(event, spline, **info)

    def _refresh(self, splines):
        """ Rebuild the arc-length tables of splines.
        """
        for s in sorted(set(splines)):
            self.splines[s].reset_arc_length_table()
            self._notify(SplineEvent.SPLINE_CHANGED, s)

    def _splines_of(self, uids):
        return [self._address(uid)[0] for uid in uids]

    # ====================================================================================================
    # Frame conversion
    # ====================================================================================================

    def _to_world_point(self, v):
        return v if self.transform is None else self.transform.transform_point(v)

    def _to_local_point(self, v):
        return v if self.transform is None else self.transform.inverse_transform_point(v)

    def _to_world_direction(self, v):
        return v if self.transform is None else self.transform.transform_direction(v)

    def _to_world_rotation(self, q):
        return q if self.transform is None else self.transform.transform_rotation(q)

    def _to_local_rotation(self, q):
        return q if self.transform is None else self.transform.inverse_transform_rotation(q)

    # ====================================================================================================
    # Queries
    # ====================================================================================================

    @property
    def spline_count(self):
        return len(self.splines)

    def point_count(self, spline):
        return self._spline(spline).point_count

    def arc_length(self, spline):
        """ Length of a spline, in the local frame.
        """
        return self._spline(spline).get_arc_length()

    def position(self, spline, distance):
        return self._to_world_point(self._spline(spline).get_point(distance))

    def direction(self, spline, distance):
        return self._to_world_direction(self._spline(spline).get_direction(distance))

    def up(self, spline, distance):
        return self._to_world_direction(self._spline(spline).get_up(distance))

    def anchor(self, spline, point):
        return self._to_world_point(self._point(spline, point).anchor)

    def orientation(self, spline, point):
        return self._to_world_rotation(self._point(spline, point).get_orientation())

    def euler_angles(self, spline, point, degrees=False):
        """ Euler angles (pitch, yaw, roll) of a control point, in world space.
        """
        cp = self._point(spline, point)
        forward = self._to_world_direction(cp.get_relative_handle(1))
        up = self._to_world_direction(cp.up)
        return spline_euler_angles(forward, up, degrees=degrees)

    def handle_position(self, spline, point, index):
        return self._to_world_point(self._point(spline, point).get_handle(index))

    def handle_magnitude(self, spline, point, index):
        return self._point(spline, point).get_handle_magnitude(index)

    def mode(self, spline, point):
        return self._point(spline, point).mode

    def spline_name(self, spline):
        return self._spline(spline).name

    def spline_settings(self, spline):
        return self._spline(spline).settings

    def active_assets(self, spline):
        return self._spline(spline).active_assets

    # ====================================================================================================
    # Junction queries
    # ====================================================================================================

    @property
    def connected_point_count(self):
        """ Number of points belonging to a junction.
        """
        return len(self.junctions)

    def connected_point_index(self, index):
        """ Junction id of the point at an index of the junction registry.

        The registry lists the junctioned points, junction after junction: the
        junction id is the index of its first point.

        Returns
        -------
            - int : junction id, None if index is out of range
        """
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)) or not (0 <= index < len(self.junctions)):
            logging.warning(f"SplineSet.connected_point_index> registry index {index} out of range [0, {len(self.junctions)}[")
            return None
        return self.junctions.group_of(self.junctions.member_at(index))

    def connected_index(self, spline, point):
        """ Junction id of a point, None if it is not in a junction.
        """
        cp = self._lookup('connected_index', spline, point)
        if cp is None:
            return None
        return self.junctions.group_of(cp.uid)

    def connection_point_count(self, group):
        """ Number of points in a junction.
        """
        return self.junctions.group_size(group)

    def index_in_connection(self, spline, point):
        """ Rank of a point in its junction, None if it is not in a junction.
        """
        cp = self._lookup('index_in_connection', spline, point)
        if cp is None:
            return None
        return self.junctions.index_within_group(cp.uid)

    def connected_point(self, spline, point, offset):
        """ Address of another point of the junction.

        Arguments
        ---------
            - spline, point (int) : address of a point in a junction
            - offset (int) : offset from the point in the junction

        Returns
        -------
            - tuple (spline, point) : the point itself if offset leaves the junction,
              None if the point is not in a junction
        """
        cp = self._lookup('connected_point', spline, point)
        if cp is None:
            return None

        group = self.junctions.group_of(cp.uid)
        if group is None:
            return None

        members = self.junctions.members_of(group)
        rank = members.index(cp.uid) + offset
        if 0 <= rank < len(members):
            return self._address(members[rank])
        return (spline, point)

    # ====================================================================================================
    # Point edition
    # ====================================================================================================

    def set_anchor(self, spline, point, position):
        """ Move a point, and all the points of its junction.

        Arguments
        ---------
            - spline, point (int) : point address
            - position (vector) : new position in world space

        Returns
        -------
            - bool : False if the address is not valid
        """
        cp = self._lookup('set_anchor', spline, point)
        if cp is None:
            return False

        moved = self.junctions.propagate_anchor(cp.uid, self._to_local_point(position))
        self._refresh(self._splines_of(moved))
        return True

    def set_handle(self, spline, point, index, position):
        """ Move a handle to a world position, the other one follows the point mode.
        """
        cp = self._lookup('set_handle', spline, point)
        if cp is None:
            return False

        try:
            cp.set_handle(index, self._to_local_point(position))
        except IndexOutOfRange as e:
            logging.warning(f"SplineSet.set_handle> {e}")
            return False

        self._refresh([spline])
        return True

    def set_handle_magnitude(self, spline, point, index, magnitude):
        cp = self._lookup('set_handle_magnitude', spline, point)
        if cp is None:
            return False

        try:
            cp.set_handle_magnitude(index, magnitude)
        except IndexOutOfRange as e:
            logging.warning(f"SplineSet.set_handle_magnitude> {e}")
            return False

        self._refresh([spline])
        return True

    def set_mode(self, spline, point, mode):
        cp = self._lookup('set_mode', spline, point)
        if cp is None:
            return False

        cp.set_mode(mode)
        self._refresh([spline])
        return True

    def set_rotation(self, spline, point, rotation):
        """ Orient a point, the whole junction rotates with it.

        Arguments
        ---------
            - spline, point (int) : point address
            - rotation (Rotation or quaternion) : new orientation in world space
        """
        cp = self._lookup('set_rotation', spline, point)
        if cp is None:
            return False

        if not isinstance(rotation, Rotation):
            rotation = Quaternion.from_quaternion(rotation)

        rotated = self.junctions.propagate_rotation(cp.uid, self._to_local_rotation(rotation))
        self._refresh(self._splines_of(rotated))
        return True

    def scale_connection(self, spline, point, scale):
        """ Scale the handles of the points of a junction.

        Negative components of scale are set to zero.
        """
        cp = self._lookup('scale_connection', spline, point)
        if cp is None:
            return False

        scaled = self.junctions.propagate_scale(cp.uid, scale)
        self._refresh(self._splines_of(scaled))
        return True

    # ====================================================================================================
    # Structure
    # ====================================================================================================

    def append_point(self, spline):
        """ Add a point at the end of a spline.

        Returns
        -------
            - int : index of the new point, None if the spline doesn't exist
        """
        sp = self._lookup('append_point', spline)
        if sp is None:
            return None

        sp.append_point()
        self._uids = None
        index = sp.point_count - 1

        self._notify(SplineEvent.POINT_ADDED, spline, point=index)
        return index

    def insert_point(self, spline, index):
        """ Insert a point before the point at index.

        Returns
        -------
            - int : index of the new point, None if the address is not valid
        """
        sp = self._lookup('insert_point', spline)
        if sp is None:
            return None

        try:
            sp.insert_point(index)
        except IndexOutOfRange as e:
            logging.warning(f"SplineSet.insert_point> {e}")
            return None

        self._uids = None
        self._notify(SplineEvent.POINT_ADDED, spline, point=index)
        return index

    def add_spline_from_point(self, spline, point):
        """ Create a new spline starting from an existing point.

        The first point of the new spline is connected to the given point.

        Returns
        -------
            - int : index of the new spline, None if the address is not valid
        """
        cp = self._lookup('add_spline_from_point', spline, point)
        if cp is None:
            return None

        index = len(self.splines)
        new_spline = Spline(cp.anchor, index)
        self.splines.append(new_spline)
        self._uids = None
        self.junctions.connect(cp.uid, new_spline.points[0].uid)

        logging.debug(f"SplineSet> spline {index} '{new_spline.name}' created from point ({spline}, {point})")
        self._notify(SplineEvent.SPLINE_ADDED, index)
        return index

    def connect(self, spline_a, point_a, spline_b, point_b):
        """ Put two points in the same junction.

        Two points already belonging to different junctions can't be connected:
        a warning is logged and nothing changes.

        Returns
        -------
            - int : junction id, None if the points can't be connected
        """
        a = self._lookup('connect', spline_a, point_a)
        b = self._lookup('connect', spline_b, point_b)
        if a is None or b is None:
            return None

        try:
            return self.junctions.connect(a.uid, b.uid)
        except JunctionConflict as e:
            logging.warning(f"SplineSet.connect> {e}")
            return None

    def remove_point(self, spline, point):
        """ Remove a point.

        The point leaves its junction first. A spline left with less than
        2 points is removed.

        Returns
        -------
            - bool : False if the address is not valid
        """
        cp = self._lookup('remove_point', spline, point)
        if cp is None:
            return False

        sp = self.splines[spline]
        self.junctions.disconnect_on_removal(cp.uid)
        sp.remove_point(cp)
        self._uids = None

        if sp.point_count >= 2:
            self._notify(SplineEvent.POINT_REMOVED, spline, point=point)
        else:
            self.remove_spline(spline)
        return True

    def remove_spline(self, spline):
        """ Remove a spline, its points leave their junctions.

        The following splines are shifted down.
        """
        sp = self._lookup('remove_spline', spline)
        if sp is None:
            return False

        for cp in list(sp.points):
            self.junctions.disconnect_on_removal(cp.uid)
        del self.splines[spline]
        self._uids = None

        logging.debug(f"SplineSet> spline {spline} '{sp.name}' removed")
        self._notify(SplineEvent.SPLINE_REMOVED, spline)
        return True

    # ====================================================================================================
    # Metadata
    # ====================================================================================================

    def set_spline_name(self, spline, name):
        sp = self._lookup('set_spline_name', spline)
        if sp is None:
            return False

        old_name = sp.name
        sp.name = str(name)
        self._notify(SplineEvent.SPLINE_RENAMED, spline, old_name=old_name, name=sp.name)
        return True

    def set_spline_settings(self, spline, settings):
        """ Attach asset generation settings to a spline, None to detach.
        """
        sp = self._lookup('set_spline_settings', spline)
        if sp is None:
            return False

        sp.set_settings(settings)
        sp.reset_arc_length_table()
        self._notify(SplineEvent.SETTINGS_CHANGED, spline, settings=settings)
        return True

    def set_active_assets(self, spline, active):
        sp = self._lookup('set_active_assets', spline)
        if sp is None:
            return False

        sp.active_assets = None if active is None else [bool(a) for a in active]
        self._notify(SplineEvent.SETTINGS_CHANGED, spline, settings=sp.settings)
        return True

    def refresh_settings(self, settings):
        """ Refresh the splines using the given settings after they changed.

        Returns
        -------
            - list of int : indices of the refreshed splines
        """
        refreshed = [i for i, sp in enumerate(self.splines) if sp.settings is settings]
        for i in refreshed:
            self.set_spline_settings(i, settings)
        return refreshed

    # ====================================================================================================
    # State
    # ====================================================================================================

    def to_dict(self):
        """ Serializable state of the set.

        Arc-length tables are not part of the state: they are computed when
        loading.
        """
        return {
            'splines': [
                {'name': sp.name, 'points': [cp.to_dict() for cp in sp.points]}
                for sp in self.splines],
            'groups': [
                [list(self._address(uid)) for uid in members]
                for members in self.junctions.groups().values()],
            }

    @classmethod
    def from_dict(cls, data, transform=None):
        """ Build a set from its state dictionary.

        The junction registry is rebuilt from the group ids stored in the
        points, in the order given by 'groups' when it exists.

        Raises
        ------
            - MalformedPersistedState
        """
        try:
            splines_data = data['splines']
            groups_data = data.get('groups')
            splines_data = list(splines_data)
        except (KeyError, TypeError, AttributeError) as e:
            raise MalformedPersistedState(f"SplineSet> invalid state: {e}") from e

        splineset = cls(transform=transform, empty=True)

        for index, spline_data in enumerate(splines_data):
            try:
                name = spline_data.get('name')
                points = [ControlPoint.from_dict(point_data) for point_data in spline_data['points']]
            except (KeyError, TypeError, AttributeError) as e:
                raise MalformedPersistedState(f"SplineSet> invalid state for spline {index}: {e}") from e

            if len(points) < 2:
                raise MalformedPersistedState(f"SplineSet> spline {index} has {len(points)} points, 2 at least are required")

            splineset.splines.append(Spline(index=index, name=name, points=points))

        points = [cp for sp in splineset.splines for cp in sp.points]

        if groups_data is not None:
            points = splineset._ordered_group_points(groups_data, points)

        splineset.junctions.rebuild(points)

        logging.debug(f"SplineSet> loaded {len(splineset.splines)} splines")
        return splineset

    def _ordered_group_points(self, groups_data, points):
        """ Grouped points in the order of the 'groups' entry of a state.
        """
        def member(address):
            try:
                s, p = (int(i) for i in address)
            except (TypeError, ValueError) as e:
                raise MalformedPersistedState(f"SplineSet> invalid junction address {address!r}") from e

            if not (0 <= s < len(self.splines)) or not (0 <= p < self.splines[s].point_count):
                raise MalformedPersistedState(f"SplineSet> junction address {address!r} out of range")
            return self.splines[s].points[p]

        if not isinstance(groups_data, (list, tuple)) or not all(isinstance(g, (list, tuple)) for g in groups_data):
            raise MalformedPersistedState("SplineSet> 'groups' must be a list of lists of addresses")

        ordered = []
        for group in groups_data:
            members = [member(address) for address in group]
            if not members or members[0].group is None or any(cp.group != members[0].group for cp in members):
                raise MalformedPersistedState(f"SplineSet> junction {group} doesn't match the point group ids")
            ordered.extend(members)

        grouped = [cp for cp in points if cp.group is not None]
        if len(ordered) != len(grouped) or set(cp.uid for cp in ordered) != set(cp.uid for cp in grouped):
            raise MalformedPersistedState("SplineSet> junctions don't match the point group ids")

        return ordered

    def load_dict(self, data):
        """ Replace the content of the set by a state.

        The set is left unchanged if the state is invalid.

        Raises
        ------
            - MalformedPersistedState
        """
        loaded = SplineSet.from_dict(data, transform=self.transform)

        for index in reversed(range(len(self.splines))):
            self._notify(SplineEvent.SPLINE_REMOVED, index)

        self.splines = loaded.splines
        self.junctions = loaded.junctions
        self.junctions.resolver = self._resolve
        self._uids = None

        for index in range(len(self.splines)):
            self._notify(SplineEvent.SPLINE_ADDED, index)
