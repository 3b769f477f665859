"""
Data Generation Module
"""
from .generators import ObservationGenerator

__all__ = ["ObservationGenerator"]
