"""
AEMET OpenData provider.
"""
from .provider import AemetProvider

__all__ = ["AemetProvider"]
