from abc import ABC, abstractmethod
import numpy as np
from typing import Optional, Tuple

from segmentation.circle import BoundaryCircle


class IrisNormalizer(ABC):
    @abstractmethod
    def normalize(self, image: np.ndarray, mask: Optional[np.ndarray], pupil: BoundaryCircle,
                  iris: BoundaryCircle, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
        """Unroll the iris annulus into a (height, width) strip.
        Returns: (normalized_image, normalized_mask)"""
        pass
