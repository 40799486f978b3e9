"""Directory Client Package

Boundary to the device-directory service.

Available clients:
- DirectoryClient: Abstract base class for all clients
- StaticDirectoryClient: File- or list-backed client for offline runs and tests
"""

from arlo_bridge.services.directory.base import (
    ARMED,
    DISARMED,
    DirectoryClient,
    validate_device,
)
from arlo_bridge.services.directory.static import StaticDirectoryClient

__all__ = [
    "ARMED",
    "DISARMED",
    "DirectoryClient",
    "validate_device",
    "StaticDirectoryClient",
]
