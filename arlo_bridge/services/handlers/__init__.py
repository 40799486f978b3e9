"""Accessory Handlers Package

Device-class specific handlers that compose HomeKit accessories.

Available handlers:
- AccessoryHandler: Base class for all handlers
- BaseStationHandler: Security system for base stations
- CameraHandler / QCameraHandler: Camera accessories with motion sensors
"""

from arlo_bridge.services.handlers.base import AccessoryHandler
from arlo_bridge.services.handlers.base_station import BaseStationHandler
from arlo_bridge.services.handlers.camera import CameraHandler, QCameraHandler, StreamOptions

__all__ = [
    "AccessoryHandler",
    "BaseStationHandler",
    "CameraHandler",
    "QCameraHandler",
    "StreamOptions",
]
