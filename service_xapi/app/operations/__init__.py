"""
Business operations exposed by the X API service.
"""

from .service import XOperations

__all__ = ["XOperations"]
