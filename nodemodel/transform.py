"""
2-D affine transforms for rotating shapes about their own center.

Matrices are 3x3 numpy arrays in the row-vector convention: a point
``[x, y, 1]`` is multiplied on the left, so ``a.multiply(b)`` applies ``a``
first and ``b`` second. Angles are in radians; positive angles rotate
clockwise on the y-down canvas.
"""

import math

import numpy as np

from .models import Point


def identity_matrix() -> np.ndarray:
    return np.identity(3, dtype=float)


def translation_matrix(tx: float, ty: float) -> np.ndarray:
    matrix = identity_matrix()
    matrix[2, 0] = tx
    matrix[2, 1] = ty
    return matrix


def rotation_matrix_rad(angle: float) -> np.ndarray:
    """Rotation about the origin, row-vector form."""
    cos, sin = math.cos(angle), math.sin(angle)
    return np.array([
        [cos, sin, 0.0],
        [-sin, cos, 0.0],
        [0.0, 0.0, 1.0],
    ])


def _fmt(value: float) -> str:
    """Format a matrix entry for the SVG descriptor."""
    value = round(float(value), 6)
    if value == 0:
        value = 0.0  # drop negative zero
    return f"{value:g}"


class Matrix:
    """An immutable 3x3 affine matrix."""

    def __init__(self, array: np.ndarray = None):
        self.array = identity_matrix() if array is None else np.array(array, dtype=float)
        self.array.setflags(write=False)

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Matrix":
        return cls(translation_matrix(tx, ty))

    @classmethod
    def rotation(cls, angle: float) -> "Matrix":
        return cls(rotation_matrix_rad(angle))

    def multiply(self, other: "Matrix") -> "Matrix":
        """Compose ``self`` then ``other``."""
        return Matrix(self.array @ other.array)

    def translate(self, tx: float, ty: float) -> "Matrix":
        return self.multiply(Matrix.translation(tx, ty))

    def rotate(self, angle: float) -> "Matrix":
        return self.multiply(Matrix.rotation(angle))

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """Transform a single point."""
        px, py, _ = np.array([x, y, 1.0]) @ self.array
        return float(px), float(py)

    def to_string(self) -> str:
        """SVG ``matrix(a,b,c,d,e,f)`` form."""
        m = self.array
        values = (m[0, 0], m[0, 1], m[1, 0], m[1, 1], m[2, 0], m[2, 1])
        return "matrix(" + ",".join(_fmt(v) for v in values) + ")"

    def __str__(self) -> str:
        return self.to_string()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return bool(np.allclose(self.array, other.array, rtol=0, atol=1e-9))

    __hash__ = None


def rotation_matrix(cx: float, cy: float, angle: float) -> Matrix:
    """Rotation by ``angle`` about ``(cx, cy)``: move center to origin, rotate, move back."""
    return Matrix.translation(-cx, -cy).rotate(angle).translate(cx, cy)


def rotation_descriptor(cx: float, cy: float, angle: float) -> str:
    """The transform string stored on a node."""
    return rotation_matrix(cx, cy, angle).to_string()


def rotate_point(point: Point, center: Point, angle: float) -> Point:
    """Rotate ``point`` about ``center``."""
    x, y = rotation_matrix(center.x, center.y, angle).apply(point.x, point.y)
    return Point(x=x, y=y)


def rotate_points(points: np.ndarray, cx: float, cy: float, angle: float) -> np.ndarray:
    """Rotate an ``(n, 2)`` array of points about ``(cx, cy)`` in one product."""
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    homogeneous = np.hstack([points, np.ones((len(points), 1))])
    return (homogeneous @ rotation_matrix(cx, cy, angle).array)[:, :2]


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)
