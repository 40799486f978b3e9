"""Pydantic schemas for devices, accessory records and diagnostics"""
from arlo_bridge.schemas.device import (
    DeviceClass,
    Device,
    AccessoryContext,
    AccessoryRecord,
)

__all__ = [
    "DeviceClass",
    "Device",
    "AccessoryContext",
    "AccessoryRecord",
]
