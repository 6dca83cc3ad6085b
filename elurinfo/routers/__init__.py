"""
HTTP routers.
"""
from . import avalanche, health, mountain, municipal, snow_science

__all__ = ["avalanche", "health", "mountain", "municipal", "snow_science"]
