from .circle import BoundaryCircle, fit_circle
from .interface import IrisSegmentator, SegmentationResult, build_iris_mask
from .classic import ClassicSegmentator

__all__ = ['BoundaryCircle', 'fit_circle', 'IrisSegmentator', 'SegmentationResult',
           'build_iris_mask', 'ClassicSegmentator', 'SEGMENTATION_METHODS', 'create_segmentator']

SEGMENTATION_METHODS = ("classic", "worldcoin")


def create_segmentator(method: str = "classic") -> IrisSegmentator:
    """Build the segmentator selected by name."""
    if method == "classic":
        return ClassicSegmentator()
    if method == "worldcoin":
        # open-iris is optional, only import it when asked for
        from .worldcoins import WorldCoinSegmentator
        return WorldCoinSegmentator()
    raise ValueError(f"Unknown segmentation method '{method}', expected one of {SEGMENTATION_METHODS}")
