from .utils import get_axis, project_on_plane, angle_between, spline_euler_angles
from .bezier import bezier_point, bezier_derivative, bezier_split, polyline_length
from .rotation import Rotation
from .quaternion import Quaternion
from .transformation import Transformation

__all__ = [
    "get_axis", "project_on_plane", "angle_between", "spline_euler_angles",
    "bezier_point", "bezier_derivative", "bezier_split", "polyline_length",
    "Rotation", "Quaternion", "Transformation",
]
