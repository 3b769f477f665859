"""
Data Ingestion Module
"""
from .loader import FileFormat, InvalidObservationsError, LoadedObservations, ObservationLoader

__all__ = [
    "FileFormat",
    "InvalidObservationsError",
    "LoadedObservations",
    "ObservationLoader",
]
