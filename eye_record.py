import logging
import os
import numpy as np
import cv2
from typing import List, Optional

from errors import ArtifactIOError, ComputationError
from segmentation import BoundaryCircle, ClassicSegmentator, IrisSegmentator
from normalization import IrisNormalizer, RubberSheetNormalizer
from feature_extraction import FeatureExtractor, FilterBankExtractor
from matching import HammingMatcher, IrisMatcher

logger = logging.getLogger(__name__)


def read_grayscale(path: str, what: str) -> np.ndarray:
    image = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise ArtifactIOError(f"Cannot load {what} {path}")
    return image


def write_image(image: Optional[np.ndarray], path: str, what: str):
    if image is None:
        raise ArtifactIOError(f"Cannot save {what} {path}: nothing to save")
    folder = os.path.dirname(path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder)
    if not cv2.imwrite(path, image):
        raise ArtifactIOError(f"Cannot save {what} {path}")
    logger.debug("Saved %s %s", what, path)


class EyeRecord:
    """Artifacts of one eye image, with the operations that compute, load and save them.

    Each artifact is None until it has been computed or loaded.
    """
    def __init__(self, segmentator: IrisSegmentator = None, normalizer: IrisNormalizer = None,
                 feature_extractor: FeatureExtractor = None, matcher: IrisMatcher = None):
        self.segmentator = segmentator or ClassicSegmentator()
        self.normalizer = normalizer or RubberSheetNormalizer()
        self.feature_extractor = feature_extractor or FilterBankExtractor()
        self.matcher = matcher or HammingMatcher()

        self.original_image: Optional[np.ndarray] = None
        self.pupil: Optional[BoundaryCircle] = None
        self.iris: Optional[BoundaryCircle] = None
        self.mask: Optional[np.ndarray] = None
        self.normalized_image: Optional[np.ndarray] = None
        self.normalized_mask: Optional[np.ndarray] = None
        self.iris_code: Optional[np.ndarray] = None

    # Original image

    def load_original_image(self, path: str):
        self.original_image = read_grayscale(path, "original image")

    # Segmentation

    def segment(self, min_iris_diameter: int, min_pupil_diameter: int,
                max_iris_diameter: int, max_pupil_diameter: int):
        """Find pupil and iris boundaries and the iris mask of the original image."""
        if self.original_image is None:
            raise ComputationError("Cannot segment without an original image")
        result = self.segmentator.segment(self.original_image, min_iris_diameter, min_pupil_diameter,
                                          max_iris_diameter, max_pupil_diameter)
        self.pupil = result.pupil
        self.iris = result.iris
        self.mask = result.mask

    def save_segmented_image(self, path: str):
        """Original image with the pupil (green) and iris (red) boundaries drawn on it."""
        if self.original_image is None or self.pupil is None or self.iris is None:
            raise ArtifactIOError(f"Cannot save segmented image {path}: image is not segmented")
        segmented = cv2.cvtColor(self.original_image, cv2.COLOR_GRAY2BGR)
        self.pupil.draw(segmented, (0, 255, 0))
        self.iris.draw(segmented, (0, 0, 255))
        write_image(segmented, path, "segmented image")

    def init_mask(self):
        """Mark every pixel of the original image as valid."""
        if self.original_image is None:
            raise ComputationError("Cannot initialize a mask without an original image")
        self.mask = np.full(self.original_image.shape[:2], 255, dtype=np.uint8)

    def load_parameters(self, path: str):
        """Read two lines: 'pupil_x pupil_y pupil_r' and 'iris_x iris_y iris_r'."""
        try:
            with open(path, "r") as f:
                values = [int(round(float(token))) for token in f.read().split()]
        except OSError as exc:
            raise ArtifactIOError(f"Cannot load parameters {path}") from exc
        except ValueError as exc:
            raise ArtifactIOError(f"Malformed parameters file {path}") from exc
        if len(values) != 6:
            raise ArtifactIOError(f"Malformed parameters file {path}: expected 6 values, got {len(values)}")
        # A negative radius raises ValidationError
        self.pupil = BoundaryCircle((values[0], values[1]), values[2])
        self.iris = BoundaryCircle((values[3], values[4]), values[5])

    def save_parameters(self, path: str):
        if self.pupil is None or self.iris is None:
            raise ArtifactIOError(f"Cannot save parameters {path}: nothing to save")
        folder = os.path.dirname(path)
        if folder and not os.path.exists(folder):
            os.makedirs(folder)
        try:
            with open(path, "w") as f:
                for circle in (self.pupil, self.iris):
                    f.write(f"{circle.center[0]} {circle.center[1]} {circle.radius}\n")
        except OSError as exc:
            raise ArtifactIOError(f"Cannot save parameters {path}") from exc

    def load_mask(self, path: str):
        self.mask = read_grayscale(path, "mask")

    def save_mask(self, path: str):
        write_image(self.mask, path, "mask")

    # Normalization

    def normalize(self, width: int, height: int):
        """Unroll the iris into a (height, width) strip and its mask."""
        if self.original_image is None:
            raise ComputationError("Cannot normalize without an original image")
        if self.pupil is None or self.iris is None:
            raise ComputationError("Cannot normalize without pupil and iris boundaries")
        self.normalized_image, self.normalized_mask = self.normalizer.normalize(
            self.original_image, self.mask, self.pupil, self.iris, width, height)

    def load_normalized_image(self, path: str):
        self.normalized_image = read_grayscale(path, "normalized image")

    def save_normalized_image(self, path: str):
        write_image(self.normalized_image, path, "normalized image")

    def load_normalized_mask(self, path: str):
        self.normalized_mask = read_grayscale(path, "normalized mask")

    def save_normalized_mask(self, path: str):
        write_image(self.normalized_mask, path, "normalized mask")

    # Encoding

    def encode(self, filters: List[np.ndarray]):
        if self.normalized_image is None:
            raise ComputationError("Cannot encode without a normalized image")
        self.iris_code = self.feature_extractor.extract(self.normalized_image, filters)

    def load_iris_code(self, path: str):
        self.iris_code = read_grayscale(path, "iris code")

    def save_iris_code(self, path: str):
        write_image(self.iris_code, path, "iris code")

    # Matching

    def match(self, other: "EyeRecord", application_mask: Optional[np.ndarray] = None) -> float:
        """Dissimilarity between the iris codes of two eyes, 0 for identical codes."""
        if self.iris_code is None or other.iris_code is None:
            raise ComputationError("Cannot match without iris codes for both eyes")
        return self.matcher.match(self.iris_code, self.normalized_mask,
                                  other.iris_code, other.normalized_mask, application_mask)
