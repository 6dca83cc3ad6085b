"""
Background services.
"""
from .sweep_service import SweepService

__all__ = ["SweepService"]
