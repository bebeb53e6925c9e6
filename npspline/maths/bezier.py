# npspline/maths/bezier.py
# MIT License
# Created on 2025-07-21
# Last update: 2026-10-18
# Author: Alain Bernard

"""
Bezier
======

Pure functions evaluating a cubic Bézier curve.

A curve is defined by its four control points:
- p0 : start anchor
- p1 : start anchor + outgoing handle
- p2 : end anchor + incoming handle
- p3 : end anchor

Control points have shape (..., 3) and are broadcasted together. The parameter
t is a scalar or an array of shape (T,); a non scalar t adds a trailing sample
dimension before the vector one:

    >>> bezier_point(p0, p1, p2, p3, .5).shape
    (3,)
    >>> bezier_point(p0, p1, p2, p3, np.linspace(0, 1, 10)).shape
    (10, 3)
"""

import numpy as np

from ..constants import bfloat

__all__ = ['bezier_point', 'bezier_derivative', 'bezier_split', 'polyline_length']

# ----------------------------------------------------------------------------------------------------
# Broadcast t
# ----------------------------------------------------------------------------------------------------

def _prepare(p0, p1, p2, p3, t, pairwise):
    p0, p1, p2, p3 = (np.asarray(p, dtype=bfloat) for p in (p0, p1, p2, p3))
    t = np.asarray(t, dtype=bfloat)
    if t.shape != () and not pairwise:
        p0, p1, p2, p3 = (p[..., None, :] for p in (p0, p1, p2, p3))
    return p0, p1, p2, p3, t[..., None]

# ----------------------------------------------------------------------------------------------------
# Evaluation
# ----------------------------------------------------------------------------------------------------

def bezier_point(p0, p1, p2, p3, t, pairwise=False):
    """
    Position on a cubic Bézier curve.

    Parameters
    ----------
    p0, p1, p2, p3 : array_like (..., 3)
        Control points.
    t : float or array_like (T,)
        Parameter in [0, 1].
    pairwise : bool, default False
        t has the batch shape of the control points: one parameter per curve
        rather than every parameter for every curve.

    Returns
    -------
    np.ndarray
        Shape (..., 3) for a scalar t or pairwise evaluation, (..., T, 3) otherwise.
    """
    p0, p1, p2, p3, t = _prepare(p0, p1, p2, p3, t, pairwise)

    omt = 1 - t
    return (
        omt*omt*omt * p0 +
        3 * omt*omt * t * p1 +
        3 * omt * t*t * p2 +
        t*t*t * p3
    )

def bezier_derivative(p0, p1, p2, p3, t, pairwise=False):
    """
    First derivative of a cubic Bézier curve with respect to t.

    The result is not normalized: its length is the speed of the curve at t.
    """
    p0, p1, p2, p3, t = _prepare(p0, p1, p2, p3, t, pairwise)

    omt = 1 - t
    return (
        3 * omt*omt * (p1 - p0) +
        6 * omt * t * (p2 - p1) +
        3 * t*t * (p3 - p2)
    )

def bezier_split(p0, p1, p2, p3, t=.5):
    """
    Split a cubic Bézier curve in two with the De Casteljau algorithm.

    Returns
    -------
    tuple
        (left, right), each one being a tuple of 4 control points.
        Together, they draw exactly the original curve.
    """
    p0, p1, p2, p3 = (np.asarray(p, dtype=bfloat) for p in (p0, p1, p2, p3))

    a = p0 + (p1 - p0)*t
    b = p1 + (p2 - p1)*t
    c = p2 + (p3 - p2)*t
    d = a + (b - a)*t
    e = b + (c - b)*t
    m = d + (e - d)*t

    return (p0, a, d, m), (m, e, c, p3)

def polyline_length(points):
    """
    Sum of the chord lengths of a polyline.

    Parameters
    ----------
    points : array_like (..., N, 3)

    Returns
    -------
    float or np.ndarray
        Length(s), shape (...).
    """
    points = np.asarray(points, dtype=bfloat)
    return np.sum(np.linalg.norm(np.diff(points, axis=-2), axis=-1), axis=-1)
