from abc import ABC, abstractmethod
import numpy as np
from typing import List


class FeatureExtractor(ABC):
    @abstractmethod
    def extract(self, normalized_iris: np.ndarray, filters: List[np.ndarray]) -> np.ndarray:
        """Encode a normalized iris strip into a binary iris code."""
        pass
