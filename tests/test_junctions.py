import numpy as np
import pytest

from npspline import ControlPoint, JunctionGraph, JunctionConflict, MalformedPersistedState
from npspline.maths import Quaternion


@pytest.fixture
def points():
    return [ControlPoint((float(i), 0., 0.)) for i in range(6)]


@pytest.fixture
def graph(points):
    arena = {p.uid: p for p in points}
    return JunctionGraph(arena.__getitem__)


def uids(points):
    return [p.uid for p in points]


def assert_contiguous(graph):
    """ Each group id is the start of its range and groups have 2 members at least.
    """
    for group, members in graph.groups().items():
        assert len(members) >= 2
        assert graph.members_of(group) == members
        assert graph.member_at(group) == members[0]


def test_new_junction(graph, points):
    a, b, *_ = points

    assert graph.connect(a.uid, b.uid) == 0
    assert a.group == b.group == 0
    assert graph.group_size(0) == 2
    assert graph.members_of(0) == [a.uid, b.uid]
    assert len(graph) == 2
    assert_contiguous(graph)


def test_join_existing_junction(graph, points):
    a, b, c, d, e, f = points

    graph.connect(a.uid, b.uid)
    graph.connect(c.uid, d.uid)
    assert c.group == 2

    # e goes at the end of the first junction, the second one is shifted
    assert graph.connect(e.uid, a.uid) == 0
    assert graph.members_of(0) == [a.uid, b.uid, e.uid]
    assert c.group == d.group == 3
    assert graph.members_of(3) == [c.uid, d.uid]
    assert graph.index_within_group(e.uid) == 2
    assert graph.index_within_group(d.uid) == 1
    assert graph.index_within_group(f.uid) is None
    assert_contiguous(graph)


def test_connect_conflicts(graph, points):
    a, b, c, d, *_ = points

    graph.connect(a.uid, b.uid)
    graph.connect(c.uid, d.uid)

    with pytest.raises(JunctionConflict):
        graph.connect(a.uid, c.uid)
    with pytest.raises(JunctionConflict):
        graph.connect(a.uid, a.uid)

    assert graph.groups() == {0: [a.uid, b.uid], 2: [c.uid, d.uid]}

    # Already connected
    assert graph.connect(b.uid, a.uid) == 0
    assert len(graph) == 4


def test_removal_dissolves_junction(graph, points):
    a, b, *_ = points

    graph.connect(a.uid, b.uid)
    assert graph.disconnect_on_removal(a.uid) == [a.uid, b.uid]

    assert a.group is None and b.group is None
    assert len(graph) == 0
    assert graph.group_of(b.uid) is None


def test_removal_renumbers(graph, points):
    a, b, c, d, e, _ = points

    graph.connect(a.uid, b.uid)
    graph.connect(a.uid, c.uid)
    graph.connect(d.uid, e.uid)

    graph.disconnect_on_removal(a.uid)

    assert graph.groups() == {0: [b.uid, c.uid], 2: [d.uid, e.uid]}
    assert b.group == 0 and d.group == 2
    assert graph.disconnect_on_removal(a.uid) == []
    assert_contiguous(graph)


def test_propagate_anchor(graph, points):
    a, b, c, *_ = points

    graph.connect(a.uid, b.uid)
    moved = graph.propagate_anchor(b.uid, (1., 2., 3.))

    assert sorted(moved) == sorted(uids([a, b]))
    np.testing.assert_allclose(a.anchor, (1., 2., 3.))
    np.testing.assert_allclose(b.anchor, (1., 2., 3.))
    np.testing.assert_allclose(c.anchor, (2., 0., 0.))

    assert graph.propagate_anchor(c.uid, (0., 0., 0.)) == [c.uid]


def test_propagate_rotation_is_rigid(graph, points):
    a, b, *_ = points
    b.set_relative_handle(1, (0., 0., -2.))

    graph.connect(a.uid, b.uid)
    graph.propagate_rotation(a.uid, Quaternion.look_rotation((1., 0., 0.)))

    np.testing.assert_allclose(a.get_relative_handle(1), (.5, 0., 0.), atol=1e-9)
    np.testing.assert_allclose(b.get_relative_handle(1), (-2., 0., 0.), atol=1e-9)
    np.testing.assert_allclose(b.up, (0., 1., 0.), atol=1e-9)


def test_propagate_scale_clamps_negative(graph, points):
    a, b, *_ = points
    b.set_relative_handle(1, (1., 0., 1.))

    graph.connect(a.uid, b.uid)
    graph.propagate_scale(a.uid, (-1., 1., 2.))

    np.testing.assert_allclose(a.get_relative_handle(1), (0., 0., 1.))
    np.testing.assert_allclose(b.get_relative_handle(1), (0., 0., 2.))
    np.testing.assert_allclose(b.anchor, (1., 0., 0.))


def test_clear(graph, points):
    a, b, *_ = points
    graph.connect(a.uid, b.uid)
    graph.clear()

    assert len(graph) == 0
    assert a.group is None and b.group is None


def test_rebuild(graph, points):
    a, b, c, d, e, f = points
    for p, group in zip(points, (2, None, 0, 2, 0, None)):
        p.group = group

    graph.rebuild(points)

    assert graph.groups() == {0: [c.uid, e.uid], 2: [a.uid, d.uid]}
    assert_contiguous(graph)


@pytest.mark.parametrize("groups", [
    (0, None, None, None, None, None),
    (0, 0, 3, 3, None, None),
    (1, 1, None, None, None, None),
])
def test_rebuild_malformed(graph, points, groups):
    for p, group in zip(points, groups):
        p.group = group

    with pytest.raises(MalformedPersistedState):
        graph.rebuild(points)
    assert len(graph) == 0
