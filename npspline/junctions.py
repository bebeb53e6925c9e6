# =============================================================================
#  npspline.junctions
# -----------------------------------------------------------------------------
#  Part of the npspline package
#
#  License: MIT
#  Created: 11/11/2022
#  Last updated: 18/10/2026
#  Author: Alain Bernard
# =============================================================================

"""
Junctions
=========

A junction is a group of control points, possibly belonging to different
splines, which share the same anchor and move, rotate and scale together.

The graph doesn't own the points: it stores their uids in a flat registry and
gets the points back through a resolver `uid -> ControlPoint` supplied by the
owner of the splines.

Registry layout:
- the members of a group occupy a contiguous range of the registry
- the id of a group is the index of its first member in the registry
- each member carries the id of its group in its `group` attribute

Ids are renumbered after each change of the registry so that these rules
always hold. A group has at least 2 members: a group left with a single member
is dissolved.

    >>> graph = JunctionGraph(resolver)
    >>> graph.connect(a.uid, b.uid)
    0
    >>> graph.members_of(0)
    [a.uid, b.uid]
"""

import logging

import numpy as np

from .errors import JunctionConflict, MalformedPersistedState
from .maths import Rotation, Quaternion

# ====================================================================================================
# Junction Graph
# ====================================================================================================

class JunctionGraph:

    def __init__(self, resolver):
        """ Registry of the junctions.

        Arguments
        ---------
            - resolver (function) : returns the ControlPoint from its uid
        """
        self.resolver = resolver
        self._registry = []

    def __str__(self):
        groups = self.groups()
        return f"<JunctionGraph: {len(groups)} junctions, {len(self._registry)} points>"

    def __repr__(self):
        return str(self)

    def __len__(self):
        return len(self._registry)

    def _point(self, uid):
        return self.resolver(uid)

    # ====================================================================================================
    # Queries
    # ====================================================================================================

    def contains(self, uid):
        return uid in self._registry

    def __contains__(self, uid):
        return uid in self._registry

    def member_at(self, index):
        """ Uid at a given index of the registry.
        """
        return self._registry[index]

    def group_of(self, uid):
        """ Group id of a point, None if it is not in a junction.
        """
        if uid not in self._registry:
            return None
        return self._point(uid).group

    def group_size(self, group):
        """ Number of points in a group.

        The members are counted from the start of the group range.

        Returns
        -------
            - int : 0 if group is not a valid group id
        """
        if group is None or group < 0:
            return 0

        count = 0
        i = group
        while i < len(self._registry) and self._point(self._registry[i]).group == group:
            i += 1
            count += 1
        return count

    def members_of(self, group):
        """ Uids of the points of a group, in registry order.
        """
        size = self.group_size(group)
        return self._registry[group:group + size] if size else []

    def index_within_group(self, uid):
        """ Rank of a point in its group, None if it is not in a junction.
        """
        if uid not in self._registry:
            return None
        return self._registry.index(uid) - self._point(uid).group

    def groups(self):
        """ Dictionary group id -> member uids.
        """
        groups = {}
        for uid in self._registry:
            groups.setdefault(self._point(uid).group, []).append(uid)
        return groups

    def _siblings(self, uid):
        """ Uids moving together with uid, uid alone if it is not in a junction.
        """
        group = self.group_of(uid)
        if group is None:
            return [uid]
        return self.members_of(group)

    # ====================================================================================================
    # Registry maintenance
    # ====================================================================================================

    def _renumber(self):
        """ Set the group ids to the start index of the group ranges.
        """
        points = [self._point(uid) for uid in self._registry]
        old = [p.group for p in points]

        start = 0
        for i, point in enumerate(points):
            if i == 0 or old[i] != old[i - 1]:
                start = i
            point.group = start

    def clear(self):
        for uid in self._registry:
            self._point(uid).group = None
        self._registry = []

    # ====================================================================================================
    # Connection
    # ====================================================================================================

    def connect(self, a, b):
        """ Put two points in the same junction.

        - None of the points is in a junction : a new junction is created
        - One of them is in a junction : the other one joins it
        - Both are in the same junction : nothing changes

        Arguments
        ---------
            - a, b (int) : uids of the points

        Raises
        ------
            - JunctionConflict : the points are the same or belong to two different junctions

        Returns
        -------
            - int : id of the junction
        """
        if a == b:
            raise JunctionConflict(f"JunctionGraph> a point can't be connected to itself (uid {a})")

        ga, gb = self.group_of(a), self.group_of(b)

        if ga is not None and gb is not None:
            if ga == gb:
                return ga
            raise JunctionConflict(f"JunctionGraph> can't connect two junctions: {ga} and {gb}")

        if ga is None and gb is None:
            group = len(self._registry)
            self._registry.extend((a, b))
            self._point(a).group = group
            self._point(b).group = group

            logging.debug(f"JunctionGraph> new junction {group} with points {a} and {b}")
            return group

        # The free point is inserted at the end of the range of the other one
        group, free = (ga, b) if ga is not None else (gb, a)

        self._registry.insert(group + self.group_size(group), free)
        self._point(free).group = group
        self._renumber()

        logging.debug(f"JunctionGraph> point {free} joins junction {group}")
        return group

    def disconnect_on_removal(self, uid):
        """ Remove a point from its junction before it is deleted.

        If the junction is left with only one point, the junction is dissolved.

        Returns
        -------
            - list of uids : the points which left a junction
        """
        if uid not in self._registry:
            return []

        point = self._point(uid)
        group = point.group

        self._registry.remove(uid)
        point.group = None
        removed = [uid]

        remaining = [u for u in self._registry if self._point(u).group == group]
        if len(remaining) == 1:
            self._registry.remove(remaining[0])
            self._point(remaining[0]).group = None
            removed.append(remaining[0])

            logging.debug(f"JunctionGraph> junction {group} dissolved")

        self._renumber()
        return removed

    # ====================================================================================================
    # Propagation
    # ====================================================================================================

    def propagate_anchor(self, uid, position):
        """ Move all the points of the junction of uid to position.

        Returns
        -------
            - list of uids : moved points
        """
        uids = self._siblings(uid)
        for u in uids:
            self._point(u).set_anchor(position)
        return uids

    def propagate_rotation(self, uid, rotation):
        """ Rotate the junction so that point uid gets the given orientation.

        The rotation bringing the point from its current orientation to the
        new one is applied to all the members: the junction rotates rigidly.

        Returns
        -------
            - list of uids : rotated points
        """
        if not isinstance(rotation, Rotation):
            rotation = Quaternion.from_quaternion(rotation)

        current = self._point(uid).get_orientation()
        delta = rotation.as_quaternion() @ ~current

        uids = self._siblings(uid)
        for u in uids:
            point = self._point(u)
            point.set_orientation(delta @ point.get_orientation())
        return uids

    def propagate_scale(self, uid, scale):
        """ Scale the handles of all the points of the junction.

        Negative components are set to zero.

        Returns
        -------
            - list of uids : scaled points
        """
        scale = np.maximum(np.asarray(scale, dtype=float), 0.)

        uids = self._siblings(uid)
        for u in uids:
            self._point(u).scale(scale)
        return uids

    # ====================================================================================================
    # Loading
    # ====================================================================================================

    def rebuild(self, points):
        """ Rebuild the registry from the group ids stored in the points.

        Points are sorted by group id, keeping the given order within a group.
        Each group id must be the index of the first member of its group, and
        each group must have at least 2 members.

        Arguments
        ---------
            - points (iterable of ControlPoints) : the points, grouped or not

        Raises
        ------
            - MalformedPersistedState
        """
        grouped = sorted((p for p in points if p.group is not None), key=lambda p: p.group)

        registry = [p.uid for p in grouped]
        if len(set(registry)) != len(registry):
            raise MalformedPersistedState("JunctionGraph> a point is registered twice")

        i = 0
        while i < len(grouped):
            group = grouped[i].group
            size = 1
            while i + size < len(grouped) and grouped[i + size].group == group:
                size += 1

            if group != i:
                raise MalformedPersistedState(f"JunctionGraph> junction id {group} doesn't match its position {i}")
            if size < 2:
                raise MalformedPersistedState(f"JunctionGraph> junction {group} has only {size} point")
            i += size

        self._registry = registry
        logging.debug(f"JunctionGraph> rebuilt with {len(self.groups())} junctions")
        return self
