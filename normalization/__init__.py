from .interface import IrisNormalizer
from .rubber_sheet import RubberSheetNormalizer

__all__ = ['IrisNormalizer', 'RubberSheetNormalizer']
