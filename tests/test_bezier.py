import numpy as np
import pytest

from npspline.maths import bezier_point, bezier_derivative, bezier_split, polyline_length


P0 = np.array([0., 0., 0.])
P1 = np.array([0., 1., 1.])
P2 = np.array([2., 1., 3.])
P3 = np.array([2., 0., 4.])


def test_endpoints():
    np.testing.assert_allclose(bezier_point(P0, P1, P2, P3, 0.), P0)
    np.testing.assert_allclose(bezier_point(P0, P1, P2, P3, 1.), P3)


def test_derivative_at_ends_follows_handles():
    np.testing.assert_allclose(bezier_derivative(P0, P1, P2, P3, 0.), 3*(P1 - P0))
    np.testing.assert_allclose(bezier_derivative(P0, P1, P2, P3, 1.), 3*(P3 - P2))


def test_shapes():
    assert bezier_point(P0, P1, P2, P3, .3).shape == (3,)
    assert bezier_point(P0, P1, P2, P3, np.linspace(0, 1, 10)).shape == (10, 3)

    batch = np.stack([P0, P1])
    q1, q2, q3 = batch + 1, batch + 2, batch + 3
    assert bezier_point(batch, q1, q2, q3, np.linspace(0, 1, 5)).shape == (2, 5, 3)
    assert bezier_point(batch, q1, q2, q3, np.array([.2, .7]), pairwise=True).shape == (2, 3)


def test_pairwise_matches_individual_evaluation():
    p0 = np.stack([P0, P1])
    p1, p2, p3 = p0 + 1, p0 + (2, 0, 1), p0 + (3, 3, 3)
    t = np.array([.25, .8])

    res = bezier_point(p0, p1, p2, p3, t, pairwise=True)
    for i in range(2):
        np.testing.assert_allclose(res[i], bezier_point(p0[i], p1[i], p2[i], p3[i], t[i]))


def test_split_draws_the_same_curve():
    left, right = bezier_split(P0, P1, P2, P3, .5)
    s = np.linspace(0, 1, 11)

    np.testing.assert_allclose(bezier_point(*left, s), bezier_point(P0, P1, P2, P3, s/2), atol=1e-12)
    np.testing.assert_allclose(bezier_point(*right, s), bezier_point(P0, P1, P2, P3, .5 + s/2), atol=1e-12)


def test_polyline_length():
    points = np.array([[0, 0, 0], [3, 0, 0], [3, 4, 0]])
    assert polyline_length(points) == pytest.approx(7.)
