from .interface import FeatureExtractor
from .filter_bank import FilterBankExtractor, polar_img_padding

__all__ = ['FeatureExtractor', 'FilterBankExtractor', 'polar_img_padding']
