import logging
import numpy as np
import cv2

from errors import ComputationError
from .circle import BoundaryCircle
from .interface import IrisSegmentator, SegmentationResult, build_iris_mask

logger = logging.getLogger(__name__)


class ClassicSegmentator(IrisSegmentator):
    """Threshold-based pupil detection followed by a radial edge search for the iris.

    Both boundaries are obtained by fitting a circle to detected boundary points.
    """
    def __init__(
        self,
        pupil_darkness: float = 0.25,
        n_rays: int = 64,
        eyelid_margin_degrees: float = 45.0,
        blur_size: int = 5,
        reflection_threshold: int = 254,
    ):
        if not 0.0 < pupil_darkness < 1.0:
            raise ValueError("pupil_darkness must be in (0.0, 1.0)")
        if n_rays < 4:
            raise ValueError("n_rays must be >= 4")
        self.pupil_darkness = pupil_darkness
        self.n_rays = n_rays
        self.eyelid_margin_degrees = eyelid_margin_degrees
        self.blur_size = blur_size
        self.reflection_threshold = reflection_threshold

    def segment(self, image: np.ndarray, min_iris_diameter: int, min_pupil_diameter: int,
                max_iris_diameter: int, max_pupil_diameter: int) -> SegmentationResult:
        if image is None or image.ndim != 2:
            raise ComputationError("Segmentation expects a single-channel image")

        blurred = cv2.GaussianBlur(image, (self.blur_size, self.blur_size), 0)
        pupil = self._find_pupil(blurred, min_pupil_diameter, max_pupil_diameter)
        iris = self._find_iris(blurred, pupil, min_iris_diameter, max_iris_diameter)
        logger.debug("Pupil %s, iris %s", pupil, iris)

        mask = build_iris_mask(image.shape, pupil, iris, image, self.reflection_threshold)
        return SegmentationResult(pupil=pupil, iris=iris, mask=mask)

    def _find_pupil(self, blurred: np.ndarray, min_diameter: int, max_diameter: int) -> BoundaryCircle:
        low = float(blurred.min())
        median = float(np.median(blurred))
        threshold = low + self.pupil_darkness * (median - low)
        _, binary = cv2.threshold(blurred, threshold, 255, cv2.THRESH_BINARY_INV)

        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (5, 5))
        binary = cv2.morphologyEx(binary, cv2.MORPH_OPEN, kernel)

        contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
        best, best_area = None, 0.0
        for contour in contours:
            _, radius = cv2.minEnclosingCircle(contour)
            if not min_diameter <= 2 * radius <= max_diameter:
                continue
            area = cv2.contourArea(contour)
            if area > best_area:
                best, best_area = contour, area

        if best is None:
            raise ComputationError(
                f"No pupil candidate with diameter in [{min_diameter}, {max_diameter}]")

        return BoundaryCircle().fit(best.reshape(-1, 2))

    def _ray_angles(self) -> np.ndarray:
        # Rays are cast in the left and right sectors only; eyelids cover the top and bottom
        half = np.radians(self.eyelid_margin_degrees)
        n_side = self.n_rays // 2
        right = np.linspace(-half, half, n_side)
        return np.concatenate([right, right + np.pi])

    def _find_iris(self, blurred: np.ndarray, pupil: BoundaryCircle,
                   min_diameter: int, max_diameter: int) -> BoundaryCircle:
        r_min = max(min_diameter / 2.0, pupil.radius + 2.0)
        r_max = max_diameter / 2.0
        if r_max - r_min < 2:
            raise ComputationError(
                f"Iris search range [{r_min}, {r_max}] is empty for pupil radius {pupil.radius}")

        radii = np.arange(r_min, r_max, 1.0)
        thetas = self._ray_angles()
        map_x = (pupil.center[0] + np.outer(np.cos(thetas), radii)).astype(np.float32)
        map_y = (pupil.center[1] + np.outer(np.sin(thetas), radii)).astype(np.float32)

        profiles = cv2.remap(blurred.astype(np.float32), map_x, map_y,
                             interpolation=cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)
        gradient = np.gradient(profiles, axis=1)

        rows = np.arange(len(thetas))
        best = np.argmax(gradient, axis=1)
        keep = gradient[rows, best] > 0
        if np.count_nonzero(keep) < 3:
            raise ComputationError("Not enough iris boundary points found")

        points = np.column_stack([map_x[rows, best][keep], map_y[rows, best][keep]])
        iris = BoundaryCircle().fit(points)
        if iris.radius <= pupil.radius:
            raise ComputationError(f"Iris radius {iris.radius} is not larger than pupil radius {pupil.radius}")
        return iris
