import math
import numpy as np
import cv2
from typing import Iterable, Sequence, Tuple, Union

from errors import ComputationError, ValidationError

Point = Tuple[int, int]


def fit_circle(points: Union[np.ndarray, Iterable[Sequence[float]]]) -> Tuple[float, float, float]:
    """Algebraic least-squares circle fit (Bullock, 2006).

    The sums are accumulated in coordinates centered on the centroid of the
    points, which keeps the linear system well conditioned.

    Returns:
        (cx, cy, r) as floats.

    Raises:
        ComputationError: fewer than 3 points, or a degenerate (collinear) set.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = len(pts)
    if n < 3:
        raise ComputationError(f"Circle fitting needs at least 3 points, got {n}")

    mx, my = pts.mean(axis=0)
    u = pts[:, 0] - mx
    v = pts[:, 1] - my

    suu = np.sum(u * u)
    svv = np.sum(v * v)
    suv = np.sum(u * v)
    suuu = np.sum(u * u * u)
    svvv = np.sum(v * v * v)
    suuv = np.sum(u * u * v)
    suvv = np.sum(u * v * v)

    det = suv * suv - suu * svv
    # Zero up to rounding, relative to the spread of the points
    if abs(det) <= 1e-12 * suu * svv:
        raise ComputationError(f"Degenerate point set for circle fitting ({n} collinear or coincident points)")

    uc = 0.5 * (suv * (svvv + suuv) - svv * (suuu + suvv)) / det
    vc = 0.5 * (suv * (suuu + suvv) - suu * (svvv + suuv)) / det
    r = math.sqrt(uc * uc + vc * vc + (suu + svv) / n)

    cx, cy = uc + mx, vc + my
    if not all(math.isfinite(x) for x in (cx, cy, r)):
        raise ComputationError(f"Circle fitting produced a non-finite result ({cx}, {cy}, {r})")
    return float(cx), float(cy), float(r)


class BoundaryCircle:
    """Circular boundary of the pupil or the iris, in integer pixel units."""

    def __init__(self, center: Point = (0, 0), radius: int = 0):
        self.center = (0, 0)
        self.radius = 0
        self.set_circle(center, radius)

    def __repr__(self) -> str:
        return f"BoundaryCircle(center={self.center}, radius={self.radius})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundaryCircle):
            return NotImplemented
        return self.center == other.center and self.radius == other.radius

    def set_center(self, center: Sequence[float]):
        self.center = (int(center[0]), int(center[1]))

    def set_radius(self, radius: float):
        if not radius >= 0:
            raise ValidationError(f"Circle with negative radius: {radius}")
        self.radius = int(radius)

    def set_circle(self, *args):
        """Set center and radius, either as (center, radius) or (x, y, radius)."""
        if len(args) == 2:
            center, radius = args
        elif len(args) == 3:
            center, radius = (args[0], args[1]), args[2]
        else:
            raise TypeError("set_circle expects (center, radius) or (x, y, radius)")
        # Validate before touching the center so a failure leaves the circle unchanged
        if not radius >= 0:
            raise ValidationError(f"Circle with negative radius: {radius}")
        self.set_center(center)
        self.set_radius(radius)

    def fit(self, points) -> "BoundaryCircle":
        """Fit the circle to boundary points and return self."""
        cx, cy, r = fit_circle(points)
        self.set_circle(round(cx), round(cy), round(r))
        return self

    def point_at(self, theta: Union[float, np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        """Cartesian coordinates of the circle at angle(s) theta (radians)."""
        x = self.center[0] + self.radius * np.cos(theta)
        y = self.center[1] + self.radius * np.sin(theta)
        return x, y

    def draw(self, image: np.ndarray, color=(0, 255, 0), thickness: int = 1) -> np.ndarray:
        cv2.circle(image, self.center, self.radius, color, thickness)
        return image
