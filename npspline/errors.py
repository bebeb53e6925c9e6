# npspline/errors.py
# MIT License
# Created on 2026-10-18
# Last update: 2026-10-18
# Author: Alain Bernard

"""
Errors
======

Exceptions raised by the spline core.

- JunctionConflict : two points which are already in junctions can't be connected
- IndexOutOfRange : a spline, point or handle index doesn't exist
- DegenerateGeometry : a spline with less than two points is evaluated
- MalformedPersistedState : a state dictionary can't be loaded
"""

__all__ = [
    'SplineError', 'JunctionConflict', 'IndexOutOfRange',
    'DegenerateGeometry', 'MalformedPersistedState',
    ]


class SplineError(Exception):
    pass

class JunctionConflict(SplineError):
    pass

class IndexOutOfRange(SplineError, IndexError):
    pass

class DegenerateGeometry(SplineError):
    pass

class MalformedPersistedState(SplineError, ValueError):
    pass
