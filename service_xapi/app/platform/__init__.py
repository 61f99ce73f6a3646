"""
Platform client package.

``base`` defines the protocol the rest of the service depends on; the
twikit adapter is the default implementation.
"""

from .base import ClientFactory, MediaAttachment, PlatformClient

__all__ = [
    "ClientFactory",
    "MediaAttachment",
    "PlatformClient",
]
