from .constants import HandleMode, SplineEvent
from .errors import SplineError, JunctionConflict, IndexOutOfRange, DegenerateGeometry, MalformedPersistedState

from .controlpoint import ControlPoint
from .spline import Spline
from .junctions import JunctionGraph
from .splineset import SplineSet

from . import constants
from . import maths

from .maths import Rotation, Quaternion, Transformation

VERSION = (1, 0, 0)

__version__ = ".".join(map(str, VERSION))

__all__ = [
    "VERSION",
    "HandleMode", "SplineEvent",
    "SplineError", "JunctionConflict", "IndexOutOfRange", "DegenerateGeometry", "MalformedPersistedState",
    "ControlPoint",
    "Spline",
    "JunctionGraph",
    "SplineSet",
    "Rotation", "Quaternion", "Transformation",
    "constants",
    "maths",
]
