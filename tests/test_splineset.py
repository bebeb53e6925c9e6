import logging
from types import SimpleNamespace

import numpy as np
import pytest

from npspline import SplineSet, Spline, SplineEvent, HandleMode, IndexOutOfRange
from npspline.maths import Quaternion, Transformation


@pytest.fixture
def events():
    return []


@pytest.fixture
def splines(events):
    ss = SplineSet()
    ss.add_listener(lambda event, spline, **info: events.append((event, spline, info)))
    return ss


def two_splines():
    ss = SplineSet()
    ss.splines.append(Spline((5., 0., 0.), 1))
    return ss


def test_default_set():
    ss = SplineSet()
    assert ss.spline_count == 1
    assert ss.spline_name(0) == 'Spline_00'
    assert ss.point_count(0) == 2
    np.testing.assert_allclose(ss.anchor(0, 0), (0., 0., 1.))
    assert ss.connected_point_count == 0

    assert SplineSet(empty=True).spline_count == 0


def test_straight_line():
    ss = SplineSet()
    ss.set_anchor(0, 1, (0., 0., 10.))
    ss.set_anchor(0, 0, (0., 0., 0.))

    length = ss.arc_length(0)
    assert length == pytest.approx(10., rel=1e-3)
    np.testing.assert_allclose(ss.position(0, 0.), (0., 0., 0.), atol=1e-12)
    np.testing.assert_allclose(ss.position(0, length), (0., 0., 10.), atol=1e-12)
    np.testing.assert_allclose(ss.up(0, 5.), (0., 1., 0.), atol=1e-9)
    assert ss.direction(0, 5.)[2] > 0


def test_connect_move_and_dissolve():
    ss = two_splines()
    ss.append_point(0)

    group = ss.connect(0, 0, 1, 0)
    assert group == 0
    assert ss.connection_point_count(group) == 2
    assert ss.connected_index(0, 0) == ss.connected_index(1, 0) == 0

    ss.set_anchor(0, 0, (1., 2., 3.))
    np.testing.assert_allclose(ss.anchor(1, 0), (1., 2., 3.))

    # Both tables are refreshed
    assert ss.arc_length(1) > 4.8
    np.testing.assert_allclose(ss.position(1, 0.), (1., 2., 3.))

    assert ss.remove_point(0, 0)
    assert ss.point_count(0) == 2
    assert ss.connected_index(1, 0) is None
    assert ss.connected_point_count == 0


def test_connect_conflict_is_rejected(caplog):
    ss = two_splines()
    ss.connect(0, 0, 1, 0)
    ss.connect(0, 1, 1, 1)

    with caplog.at_level(logging.WARNING):
        assert ss.connect(0, 0, 0, 1) is None
    assert "can't connect two junctions" in caplog.text

    assert ss.connection_point_count(0) == 2
    assert ss.connection_point_count(2) == 2


def test_connected_point_index(caplog):
    ss = two_splines()
    ss.connect(0, 0, 1, 0)
    ss.connect(0, 1, 1, 1)

    assert [ss.connected_point_index(i) for i in range(ss.connected_point_count)] == [0, 0, 2, 2]

    with caplog.at_level(logging.WARNING):
        assert ss.connected_point_index(4) is None
        assert ss.connected_point_index(-1) is None
    assert "out of range" in caplog.text


def test_points_resolved_after_structure_changes():
    ss = SplineSet()
    first = ss.splines[0].points[0]
    assert ss.junctions.resolver(first.uid) is first

    ss.append_point(0)
    added = ss.splines[0].points[2]
    assert ss.junctions.resolver(added.uid) is added

    index = ss.add_spline_from_point(0, 2)
    np.testing.assert_allclose(ss.anchor(index, 0), added.anchor)

    ss.remove_point(0, 0)
    with pytest.raises(KeyError):
        ss.junctions.resolver(first.uid)

    # The junction still follows the moved points
    ss.set_anchor(0, 1, (2., 2., 2.))
    np.testing.assert_allclose(ss.anchor(index, 0), (2., 2., 2.))


def test_add_spline_from_point(splines, events):
    index = splines.add_spline_from_point(0, 1)

    assert index == 1
    assert splines.spline_name(1) == 'Spline_01'
    np.testing.assert_allclose(splines.anchor(1, 0), splines.anchor(0, 1))
    assert splines.connected_index(0, 1) == splines.connected_index(1, 0) == 0
    assert splines.index_in_connection(0, 1) == 0
    assert splines.index_in_connection(1, 0) == 1
    assert events[-1] == (SplineEvent.SPLINE_ADDED, 1, {})

    assert splines.connected_point(0, 1, 1) == (1, 0)
    assert splines.connected_point(1, 0, -1) == (0, 1)
    assert splines.connected_point(0, 1, 5) == (0, 1)
    assert splines.connected_point(0, 0, 1) is None

    # A third branch joins the same junction
    splines.add_spline_from_point(1, 0)
    assert splines.connection_point_count(0) == 3
    assert splines.find_point(splines.splines[2].points[0]) == (2, 0)


def test_set_rotation_rotates_the_junction():
    ss = SplineSet()
    ss.add_spline_from_point(0, 1)

    assert ss.set_rotation(0, 1, Quaternion.look_rotation((1., 0., 0.)))

    forward = np.array((0., 0., 1.))
    np.testing.assert_allclose(ss.orientation(0, 1) @ forward, (1., 0., 0.), atol=1e-9)
    np.testing.assert_allclose(ss.orientation(1, 0) @ forward, (1., 0., 0.), atol=1e-9)
    assert ss.euler_angles(1, 0, degrees=True)[1] == pytest.approx(90.)


def test_scale_connection():
    ss = SplineSet()
    ss.add_spline_from_point(0, 1)

    assert ss.scale_connection(0, 1, (1., 1., 4.))
    assert ss.handle_magnitude(0, 1, 1) == pytest.approx(2.)
    assert ss.handle_magnitude(1, 0, 0) == pytest.approx(2.)
    assert ss.handle_magnitude(0, 0, 1) == pytest.approx(.5)


def test_handles_and_mode():
    ss = SplineSet()

    assert ss.set_handle(0, 0, 1, (0., 1., 1.))
    np.testing.assert_allclose(ss.handle_position(0, 0, 1), (0., 1., 1.))
    np.testing.assert_allclose(ss.handle_position(0, 0, 0), (0., -1., 1.))

    assert ss.set_mode(0, 0, HandleMode.FREE)
    assert ss.mode(0, 0) == HandleMode.FREE

    assert ss.set_handle_magnitude(0, 0, 0, 0.)
    assert ss.handle_magnitude(0, 0, 0) == pytest.approx(.01)
    assert ss.handle_magnitude(0, 0, 1) == pytest.approx(1.)


def test_structure_events(splines, events):
    assert splines.append_point(0) == 2
    assert events[-1] == (SplineEvent.POINT_ADDED, 0, {'point': 2})

    assert splines.insert_point(0, 1) == 1
    assert splines.point_count(0) == 4
    assert events[-1] == (SplineEvent.POINT_ADDED, 0, {'point': 1})

    assert splines.remove_point(0, 3)
    assert events[-1] == (SplineEvent.POINT_REMOVED, 0, {'point': 3})

    assert splines.set_spline_name(0, 'road')
    assert splines.spline_name(0) == 'road'
    assert events[-1] == (SplineEvent.SPLINE_RENAMED, 0, {'old_name': 'Spline_00', 'name': 'road'})


def test_remove_point_cascades_to_spline(splines, events):
    splines.add_spline_from_point(0, 0)

    assert splines.remove_point(0, 1)
    assert splines.spline_count == 1
    assert events[-1] == (SplineEvent.SPLINE_REMOVED, 0, {})

    # The remaining spline left the junction
    assert splines.connected_index(0, 0) is None
    assert splines.connected_point_count == 0


def test_remove_spline_dissolves_junctions(splines, events):
    splines.add_spline_from_point(0, 1)
    splines.add_spline_from_point(0, 0)
    assert splines.connected_point_count == 4

    assert splines.remove_spline(1)
    assert splines.spline_count == 2
    assert splines.connected_index(0, 1) is None
    assert splines.connected_index(1, 0) == splines.connected_index(0, 0) == 0
    assert splines.connected_point_count == 2
    assert (SplineEvent.SPLINE_REMOVED, 1, {}) in events


def test_listener_removal(splines, events):
    callback = splines.listeners[0]
    assert splines.remove_listener(callback)
    assert not splines.remove_listener(callback)

    splines.append_point(0)
    assert events == []


def test_out_of_range_addresses(caplog):
    ss = SplineSet()

    with caplog.at_level(logging.WARNING):
        assert ss.connected_index(5, 0) is None
        assert ss.connected_index(0, 9) is None
        assert ss.index_in_connection(-1, 0) is None
        assert not ss.set_anchor(3, 0, (0., 0., 0.))
        assert not ss.remove_point(0, 7)
        assert ss.append_point(2) is None
        assert ss.insert_point(0, 9) is None
        assert not ss.set_handle(0, 0, 2, (0., 0., 0.))
        assert not ss.set_handle_magnitude(0, 1, -1, 3.)
    assert "out of range" in caplog.text
    assert "handle index must be 0 or 1" in caplog.text

    assert ss.point_count(0) == 2
    np.testing.assert_allclose(ss.splines[0].points[0].handles, [[0., 0., -.5], [0., 0., .5]])
    assert ss.handle_magnitude(0, 1, 1) == pytest.approx(.5)

    with pytest.raises(IndexOutOfRange):
        ss.position(4, 0.)
    with pytest.raises(IndexOutOfRange):
        ss.handle_position(0, 0, 2)
    with pytest.raises(IndexOutOfRange):
        ss.anchor(0, 2)


def test_world_transform():
    tf = Transformation(position=(10., 0., 0.), rotation=Quaternion.from_axis_angle((0., 1., 0.), np.pi/2))
    ss = SplineSet(transform=tf)

    np.testing.assert_allclose(ss.anchor(0, 0), (11., 0., 0.), atol=1e-9)
    np.testing.assert_allclose(ss.position(0, 1.), (12., 0., 0.), atol=1e-9)
    np.testing.assert_allclose(ss.direction(0, .5)[[1, 2]], (0., 0.), atol=1e-9)

    ss.set_anchor(0, 0, (10., 0., 0.))
    np.testing.assert_allclose(ss.splines[0].points[0].anchor, (0., 0., 0.), atol=1e-9)

    ss.set_rotation(0, 0, tf.rotation)
    assert ss.splines[0].points[0].get_orientation().is_identity()


def test_settings(splines, events):
    settings = SimpleNamespace(asset_count=2)
    splines.add_spline_from_point(0, 1)

    assert splines.set_spline_settings(1, settings)
    assert splines.spline_settings(1) is settings
    assert splines.active_assets(1) == [True, True]
    assert events[-1] == (SplineEvent.SETTINGS_CHANGED, 1, {'settings': settings})

    assert splines.set_active_assets(1, [1, 0])
    assert splines.active_assets(1) == [True, False]

    assert splines.refresh_settings(settings) == [1]
    assert splines.active_assets(1) == [True, True]


def test_reset(splines, events):
    splines.add_spline_from_point(0, 1)
    splines.reset()

    assert splines.spline_count == 1
    assert splines.connected_point_count == 0
    assert events[-1] == (SplineEvent.SPLINE_ADDED, 0, {})
