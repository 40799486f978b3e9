"""Base Directory Client Interface

Defines the abstract boundary to the device-directory service: an
account-bound API that logs in once and then reports the account's
devices one at a time for the lifetime of the session.

Payload validation happens here, at the client boundary, so a device
missing a required field never reaches the reconciler.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Mapping, Union

from pydantic import ValidationError

from arlo_bridge.core.errors import DeviceValidationError
from arlo_bridge.schemas.device import Device

logger = logging.getLogger(__name__)

# Generic modes understood by every base station
ARMED = "armed"
DISARMED = "disarmed"


def validate_device(payload: Union[Device, Mapping[str, Any]]) -> Device:
    """
    Validate a device payload reported by the directory.

    Args:
        payload: Raw mapping from the directory, or an existing Device

    Returns:
        Structurally valid Device

    Raises:
        DeviceValidationError: If `id` or `type` is missing or empty
    """
    if isinstance(payload, Device):
        return payload
    try:
        return Device.model_validate(payload)
    except ValidationError as e:
        raise DeviceValidationError(f"Invalid device payload: {e}") from e


class DirectoryClient(ABC):
    """
    Abstract base class for directory clients.

    Example usage:
        client = StaticDirectoryClient(devices)
        await client.login(email, password)
        async for device in client.devices():
            ...
        await client.close()
    """

    @abstractmethod
    async def login(self, email: str, password: str) -> None:
        """
        Establish a session with the directory.

        Raises:
            DirectoryLoginError: If the credentials are rejected
        """

    @abstractmethod
    def devices(self) -> AsyncIterator[Device]:
        """
        Yield discovered devices, one at a time, for the session's lifetime.

        The stream is not restartable; it ends only when the client closes.
        """

    @abstractmethod
    async def set_mode(self, device_id: str, mode: str) -> None:
        """Ask the directory to switch a base station to `mode`."""

    async def close(self) -> None:
        """Release the session. Default implementation does nothing."""
        return None
