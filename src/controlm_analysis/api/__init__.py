"""
API Module

HTTP query API over the catalog database.
"""

from .schemas import ApiResponse, JobSearchBody
from .server import create_app, run_server

__all__ = [
    'ApiResponse',
    'JobSearchBody',
    'create_app',
    'run_server',
]
