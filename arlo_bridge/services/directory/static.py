"""Static Directory Client

File- or list-backed implementation of DirectoryClient for offline runs
and tests. It reports a fixed device list after login, then any payload
pushed at runtime, until closed.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from arlo_bridge.core.errors import DeviceValidationError, DirectoryError, DirectoryLoginError
from arlo_bridge.schemas.device import Device
from arlo_bridge.services.directory.base import DirectoryClient, validate_device

logger = logging.getLogger(__name__)

_CLOSED = object()


class StaticDirectoryClient(DirectoryClient):
    """
    Directory client that serves a known device list.

    Invalid payloads are dropped at this boundary with a warning so the
    rest of the stream keeps flowing.
    """

    def __init__(self, devices: Optional[Iterable[Union[Device, Mapping[str, Any]]]] = None):
        self._initial: List[Union[Device, Mapping[str, Any]]] = list(devices or [])
        self._pending: "asyncio.Queue[Any]" = asyncio.Queue()
        self._logged_in = False
        self._closed = False
        self.mode_changes: List[Tuple[str, str]] = []

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticDirectoryClient":
        """
        Build a client from a JSON file holding a list of device payloads.

        Raises:
            DirectoryError: If the file cannot be read or is not a JSON list
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                payloads = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DirectoryError(f"Cannot read device list {path}: {e}") from e
        if not isinstance(payloads, list):
            raise DirectoryError(f"Device list {path} must be a JSON array")
        return cls(payloads)

    @property
    def is_logged_in(self) -> bool:
        return self._logged_in

    async def login(self, email: str, password: str) -> None:
        if not email or not password:
            raise DirectoryLoginError("Email and password are required")
        self._logged_in = True
        logger.info(
            "Directory session established",
            extra={"event_type": "directory_login", "device_count": len(self._initial)}
        )

    def push(self, payload: Union[Device, Mapping[str, Any]]) -> None:
        """Report another device on the live stream."""
        self._pending.put_nowait(payload)

    async def devices(self) -> AsyncIterator[Device]:
        if not self._logged_in:
            raise DirectoryError("login() must complete before devices are reported")

        for payload in self._initial:
            device = self._validate(payload)
            if device is not None:
                yield device

        while True:
            payload = await self._pending.get()
            if payload is _CLOSED:
                return
            device = self._validate(payload)
            if device is not None:
                yield device

    async def set_mode(self, device_id: str, mode: str) -> None:
        self.mode_changes.append((device_id, mode))
        logger.info(
            f"Mode change requested for {device_id}: {mode}",
            extra={"device_id": device_id, "mode": mode}
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pending.put_nowait(_CLOSED)

    def _validate(self, payload: Union[Device, Mapping[str, Any]]) -> Optional[Device]:
        try:
            return validate_device(payload)
        except DeviceValidationError as e:
            logger.warning(f"Dropping invalid device payload: {e}")
            return None

    def get_stats(self) -> Dict[str, Any]:
        """Counters for diagnostics."""
        return {
            "initial_devices": len(self._initial),
            "pending": self._pending.qsize(),
            "mode_changes": len(self.mode_changes),
            "closed": self._closed,
        }
