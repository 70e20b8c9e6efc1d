from abc import ABC, abstractmethod
import numpy as np
from typing import Optional


class IrisMatcher(ABC):
    @abstractmethod
    def match(self, code1: np.ndarray, mask1: Optional[np.ndarray], code2: np.ndarray,
              mask2: Optional[np.ndarray], application_mask: Optional[np.ndarray] = None) -> float:
        """Compare two iris codes and return a dissimilarity score in [0, 1]."""
        pass
