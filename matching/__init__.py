from .interface import IrisMatcher
from .hamming import HammingMatcher

__all__ = ['IrisMatcher', 'HammingMatcher']
