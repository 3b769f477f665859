"""
API Module
"""
from .dependencies import compute_report, get_report
from .middleware import RequestLoggingMiddleware

__all__ = [
    "compute_report",
    "get_report",
    "RequestLoggingMiddleware",
]
