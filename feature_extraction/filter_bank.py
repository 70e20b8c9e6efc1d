import numpy as np
import cv2
from typing import List

from errors import ComputationError
from .interface import FeatureExtractor


def polar_img_padding(img: np.ndarray, p_rows: int, p_cols: int) -> np.ndarray:
    """Apply zero-padding vertically and rotate-padding horizontally."""
    i_rows, i_cols = img.shape
    padded_image = np.zeros((i_rows + 2 * p_rows, i_cols + 2 * p_cols), dtype=img.dtype)

    padded_image[p_rows : i_rows + p_rows, p_cols : i_cols + p_cols] = img
    if p_cols > 0:
        padded_image[p_rows : i_rows + p_rows, 0:p_cols] = img[:, -p_cols:]
        padded_image[p_rows : i_rows + p_rows, -p_cols:] = img[:, 0:p_cols]

    return padded_image


class FilterBankExtractor(FeatureExtractor):
    """Sign of the filter responses, one code block per filter stacked vertically.

    The strip is periodic along its width (the angular axis) so it is wrapped
    horizontally before filtering. Vertically the border is replicated.
    """
    def extract(self, normalized_iris: np.ndarray, filters: List[np.ndarray]) -> np.ndarray:
        if not filters:
            raise ComputationError("Cannot encode without filters")
        if normalized_iris is None or normalized_iris.ndim != 2:
            raise ComputationError("Encoding expects a single-channel normalized iris")

        strip = normalized_iris.astype(np.float32)
        rows, cols = strip.shape
        codes = []
        for kernel in filters:
            p_cols = kernel.shape[1] // 2
            if p_cols > cols:
                raise ComputationError(
                    f"Filter {kernel.shape[0]}x{kernel.shape[1]} is wider than the normalized iris ({cols})")
            padded = polar_img_padding(strip, 0, p_cols)
            response = cv2.filter2D(padded, cv2.CV_32F, kernel.astype(np.float32),
                                    borderType=cv2.BORDER_REPLICATE)
            response = response[:, p_cols : p_cols + cols]
            codes.append(np.where(response > 0, 255, 0).astype(np.uint8))

        return np.vstack(codes)
