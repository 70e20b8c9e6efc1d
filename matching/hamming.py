import numpy as np
from typing import Optional, Tuple

from errors import ComputationError
from .interface import IrisMatcher


def shift_sequence(max_shift: int):
    """0, -1, 1, -2, 2, ... up to +/- max_shift."""
    return [0] + [y for x in range(1, max_shift + 1) for y in (-x, x)]


def get_bitcounts(
    code1: np.ndarray,
    valid1: np.ndarray,
    code2: np.ndarray,
    valid2: np.ndarray,
    application: np.ndarray,
    shift: int
) -> Tuple[int, int]:
    """Count disagreeing bits and total bits in the common valid region for one shift.

    Codes are stacked blocks of the strip height; validity is defined per strip
    cell and repeated for every block.
    """
    n_blocks = code1.shape[0] // valid1.shape[0]

    shifted_code = np.roll(code2, shift, axis=1)
    shifted_valid = np.roll(valid2, shift, axis=1)

    valid = np.tile(valid1 & shifted_valid & application, (n_blocks, 1))
    irisbits = code1 != shifted_code

    irisbitcount = int(np.count_nonzero(irisbits & valid))
    maskbitcount = int(np.count_nonzero(valid))
    return irisbitcount, maskbitcount


class HammingMatcher(IrisMatcher):
    def __init__(self, max_shift: int = 10):
        """Initialize matcher parameters. Shifts are in columns of the normalized strip."""
        if max_shift < 0:
            raise ValueError("max_shift must be >= 0")
        self.max_shift = max_shift

    def match(self, code1: np.ndarray, mask1: Optional[np.ndarray], code2: np.ndarray,
              mask2: Optional[np.ndarray], application_mask: Optional[np.ndarray] = None) -> float:
        """Fractional Hamming distance minimized over circular shifts of the second code."""
        if code1.shape != code2.shape:
            raise ComputationError(f"Iris codes have different shapes: {code1.shape} vs {code2.shape}")

        bits1 = code1 > 0
        bits2 = code2 > 0
        # Validity is defined per strip cell; without any mask the whole code is one block
        strip_shape = next((m.shape for m in (mask1, mask2, application_mask) if m is not None), code1.shape)
        valid1 = self._validity(mask1, strip_shape)
        valid2 = self._validity(mask2, strip_shape)
        if valid1.shape != valid2.shape:
            raise ComputationError(f"Normalized masks have different shapes: {valid1.shape} vs {valid2.shape}")
        if code1.shape[0] % valid1.shape[0] or code1.shape[1] != valid1.shape[1]:
            raise ComputationError(
                f"Iris code of shape {code1.shape} does not match normalized mask of shape {valid1.shape}")

        if application_mask is None:
            application = np.ones(valid1.shape, dtype=bool)
        else:
            if application_mask.shape != valid1.shape:
                raise ComputationError(
                    f"Application mask of shape {application_mask.shape} does not match "
                    f"normalized mask of shape {valid1.shape}")
            application = application_mask > 0

        # Find best match over allowed rotations
        best_distance = 1.0
        for shift in shift_sequence(self.max_shift):
            irisbitcount, maskbitcount = get_bitcounts(bits1, valid1, bits2, valid2, application, shift)

            # Skip if no common unmasked region
            if maskbitcount == 0:
                continue

            distance = irisbitcount / maskbitcount
            if distance < best_distance:
                best_distance = distance

        return best_distance

    @staticmethod
    def _validity(mask: Optional[np.ndarray], shape) -> np.ndarray:
        if mask is None:
            return np.ones(shape, dtype=bool)
        return mask > 0
