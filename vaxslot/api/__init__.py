"""
CoWIN Direct API Module
"""
from .client import CoWinAPIClient, APIError
from .auth import CoWinAuth, AuthenticationError
from .endpoints import Endpoints, DEFAULT_HEADERS

__all__ = [
    "CoWinAPIClient",
    "APIError",
    "CoWinAuth",
    "AuthenticationError",
    "Endpoints",
    "DEFAULT_HEADERS",
]
