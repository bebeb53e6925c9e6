import numpy as np
import pytest

from npspline import ControlPoint, HandleMode, IndexOutOfRange, MalformedPersistedState
from npspline.maths import Quaternion


def test_default_handles():
    cp = ControlPoint((1., 2., 3.))
    np.testing.assert_allclose(cp.handles, [[0., 0., -.5], [0., 0., .5]])
    np.testing.assert_allclose(cp.get_handle(1), (1., 2., 3.5))
    assert cp.mode == HandleMode.MIRRORED
    assert cp.group is None


def test_mirrored_handles_stay_opposite():
    cp = ControlPoint()
    cp.set_relative_handle(1, (1., 2., 3.))
    np.testing.assert_allclose(cp.get_relative_handle(0), (-1., -2., -3.))

    cp.set_handle(0, (0., 0., -4.))
    np.testing.assert_allclose(cp.get_relative_handle(1), (0., 0., 4.))


def test_aligned_handles_keep_their_length():
    cp = ControlPoint(mode=HandleMode.ALIGNED)
    cp.set_relative_handle(1, (0., 3., 0.))
    np.testing.assert_allclose(cp.get_relative_handle(0), (0., -.5, 0.))
    np.testing.assert_allclose(cp.get_relative_handle(1), (0., 3., 0.))


def test_free_handles_are_independent():
    cp = ControlPoint(mode='FREE')
    cp.set_relative_handle(1, (1., 0., 0.))
    np.testing.assert_allclose(cp.get_relative_handle(0), (0., 0., -.5))


def test_set_mode_snaps_back_handle():
    cp = ControlPoint(mode=HandleMode.FREE)
    cp.set_relative_handle(1, (2., 0., 0.))
    cp.set_mode(HandleMode.MIRRORED)
    np.testing.assert_allclose(cp.get_relative_handle(0), (-2., 0., 0.))


def test_handle_magnitude_is_clamped():
    cp = ControlPoint()
    cp.set_handle_magnitude(0, 0.)
    assert cp.get_handle_magnitude(0) == pytest.approx(ControlPoint.MIN_MAGNITUDE)
    assert cp.get_handle_magnitude(1) == pytest.approx(.01)
    np.testing.assert_allclose(cp.get_relative_handle(0), (0., 0., -.01))

    cp.set_relative_handle(1, (0., 0., 0.))
    assert cp.get_handle_magnitude(1) == pytest.approx(.01)
    np.testing.assert_allclose(cp.get_relative_handle(1), (0., 0., .01))


def test_scale_handles():
    cp = ControlPoint(forward=(2., 0., 0.))
    cp.scale((3., 1., 1.))
    np.testing.assert_allclose(cp.get_relative_handle(1), (3., 0., 0.))

    cp.scale((0., 1., 1.))
    assert cp.get_handle_magnitude(0) == pytest.approx(.01)
    assert cp.get_handle_magnitude(1) == pytest.approx(.01)


def test_orientation():
    cp = ControlPoint(forward=(0., 0., 2.))
    assert cp.get_orientation().is_identity()

    cp.set_orientation(Quaternion.from_axis_angle((0., 1., 0.), np.pi/2))
    np.testing.assert_allclose(cp.get_relative_handle(1), (1., 0., 0.), atol=1e-9)
    np.testing.assert_allclose(cp.get_relative_handle(0), (-1., 0., 0.), atol=1e-9)
    np.testing.assert_allclose(cp.up, (0., 1., 0.), atol=1e-9)

    pitch, yaw, roll = cp.get_euler_angles(degrees=True)
    assert yaw == pytest.approx(90.)


def test_bad_handle_index():
    cp = ControlPoint()
    with pytest.raises(IndexOutOfRange):
        cp.get_relative_handle(2)
    with pytest.raises(IndexOutOfRange):
        cp.set_handle_magnitude(-1, 1.)


def test_copy_has_new_identity():
    cp = ControlPoint((1., 0., 0.))
    cp.group = 3
    other = cp.copy()
    assert other.uid != cp.uid
    assert other.group is None
    np.testing.assert_allclose(other.handles, cp.handles)


def test_state():
    cp = ControlPoint((1., 2., 3.), forward=(0., 1., 0.), up=(1., 0., 0.), mode=HandleMode.ALIGNED)
    cp.group = 4

    data = cp.to_dict()
    assert data['mode'] == 'ALIGNED'

    restored = ControlPoint.from_dict(data)
    assert restored.to_dict() == data


@pytest.mark.parametrize("data", [
    {'handles': [[0, 0, -1], [0, 0, 1]]},
    {'anchor': [0, 0], 'handles': [[0, 0, -1], [0, 0, 1]]},
    {'anchor': [0, 0, 0], 'handles': [[0, 0, 1]]},
    {'anchor': [0, 0, 0], 'handles': [[0, 0, -1], [0, 0, 1]], 'mode': 'BOGUS'},
    {'anchor': [0, 0, 0], 'handles': [[0, 0, -1], [0, 0, 1]], 'group': -1},
])
def test_malformed_state(data):
    with pytest.raises(MalformedPersistedState):
        ControlPoint.from_dict(data)
