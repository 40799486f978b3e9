"""Pydantic schemas for directory devices and persisted accessory records"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DeviceClass(str, Enum):
    """Device classes reported by the directory service"""
    BASESTATION = "basestation"  # hub
    CAMERA = "camera"
    Q = "arloq"  # Arlo Q, a camera that is also its own base station

    @classmethod
    def from_string(cls, value: str) -> Optional["DeviceClass"]:
        """Convert string to DeviceClass, returns None if unknown"""
        try:
            return cls(value.lower())
        except ValueError:
            return None


class Device(BaseModel):
    """
    A physical device as reported by the directory service.

    Only `id` and `type` are structurally required. Any extra fields the
    directory reports are kept so the snapshot stored in an accessory's
    context is complete.
    """

    id: str = Field(..., min_length=1, description="Stable external identifier")
    type: str = Field(..., min_length=1, description="Raw device class reported by the directory")
    display_name: str = Field(default="", alias="displayName", description="Human-readable label")
    model_id: Optional[str] = Field(default=None, alias="modelId", description="Hardware model")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def device_class(self) -> Optional[DeviceClass]:
        """Known device class for `type`, or None when the class is unknown."""
        return DeviceClass.from_string(self.type)

    @property
    def name(self) -> str:
        """Display name, falling back to the id when the directory sent none."""
        return self.display_name or self.id


class AccessoryContext(BaseModel):
    """Free-form context persisted with an accessory"""

    device: Optional[Device] = None

    model_config = ConfigDict(extra="allow")


class AccessoryRecord(BaseModel):
    """
    The host's persisted representation of one physical device.

    `identity` is derived solely from the device id and is the record's
    primary key. `display_name` is set at creation and never rewritten.
    """

    identity: str = Field(..., min_length=1)
    display_name: str = Field(..., alias="displayName")
    context: AccessoryContext = Field(default_factory=AccessoryContext)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def device(self) -> Optional[Device]:
        """Last-known device snapshot."""
        return self.context.device
