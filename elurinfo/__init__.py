"""
ElurInfo: avalanche and mountain weather bulletin API.
"""

__version__ = "1.0.0"
