from abc import ABC, abstractmethod
from dataclasses import dataclass
import numpy as np

from .circle import BoundaryCircle


@dataclass
class SegmentationResult:
    """Pupil and iris boundaries plus the binary iris mask (255 = iris pixel)."""
    pupil: BoundaryCircle
    iris: BoundaryCircle
    mask: np.ndarray


class IrisSegmentator(ABC):
    @abstractmethod
    def segment(self, image: np.ndarray, min_iris_diameter: int, min_pupil_diameter: int,
                max_iris_diameter: int, max_pupil_diameter: int) -> SegmentationResult:
        """Locate pupil and iris boundaries in a grayscale eye image.
        Diameters are in pixels."""
        pass


def build_iris_mask(shape, pupil: BoundaryCircle, iris: BoundaryCircle,
                    image: np.ndarray = None, reflection_threshold: int = 254) -> np.ndarray:
    """Annulus between pupil and iris, minus specular reflections when an image is given."""
    mask = np.zeros(shape[:2], dtype=np.uint8)
    iris.draw(mask, color=255, thickness=-1)
    pupil.draw(mask, color=0, thickness=-1)
    if image is not None:
        mask[image >= reflection_threshold] = 0
    return mask
