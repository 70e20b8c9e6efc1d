import numpy as np
import cv2
from typing import Optional, Tuple

from errors import ComputationError
from segmentation.circle import BoundaryCircle
from .interface import IrisNormalizer


class RubberSheetNormalizer(IrisNormalizer):
    """Linear mapping from the pupil boundary to the iris boundary.

    Column j of the strip samples angle 2*pi*j/width, row i samples the point
    i/height of the way from the pupil circle to the iris circle. Both circles
    may have different centers.
    """
    def normalize(self, image: np.ndarray, mask: Optional[np.ndarray], pupil: BoundaryCircle,
                  iris: BoundaryCircle, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
        if width <= 0 or height <= 0:
            raise ComputationError(f"Invalid size of normalized iris: {width}x{height}")

        map_x, map_y = self.sampling_maps(pupil, iris, width, height)

        normalized_image = cv2.remap(image, map_x, map_y, interpolation=cv2.INTER_LINEAR,
                                     borderMode=cv2.BORDER_CONSTANT, borderValue=0)

        if mask is None:
            mask = np.full(image.shape[:2], 255, dtype=np.uint8)
        # Samples falling outside the image are invalid
        normalized_mask = cv2.remap(mask, map_x, map_y, interpolation=cv2.INTER_NEAREST,
                                    borderMode=cv2.BORDER_CONSTANT, borderValue=0)

        return normalized_image, normalized_mask

    @staticmethod
    def sampling_maps(pupil: BoundaryCircle, iris: BoundaryCircle,
                      width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
        """Source coordinates (map_x, map_y) of each strip cell, shaped (height, width)."""
        theta = 2 * np.pi * np.arange(width) / width
        t = (np.arange(height) / height)[:, np.newaxis]

        pupil_x, pupil_y = pupil.point_at(theta)
        iris_x, iris_y = iris.point_at(theta)

        map_x = (1 - t) * pupil_x + t * iris_x
        map_y = (1 - t) * pupil_y + t * iris_y
        return map_x.astype(np.float32), map_y.astype(np.float32)
