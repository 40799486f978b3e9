"""
Host platform interface

The host is the accessory platform that persists accessory records across
restarts. The bridge consumes its restored records and identity function
and asks it to register new records or refresh existing ones.
"""
import uuid
from abc import ABC, abstractmethod
from typing import Any, List

from arlo_bridge.schemas.device import AccessoryRecord

# Namespace for accessory identities; changing it orphans every paired accessory
ACCESSORY_NAMESPACE = uuid.UUID("2b8e4c52-7f0a-5d3e-9a61-0c4f1e7d9b3a")


def generate_identity(device_id: str) -> str:
    """Deterministic accessory identity for a device id (UUIDv5)."""
    return str(uuid.uuid5(ACCESSORY_NAMESPACE, device_id))


class HostPlatform(ABC):
    """
    Abstract accessory host.

    `register_new` and `refresh_existing` are fire-and-forget: callers do
    not await or retry them, so implementations must not raise.
    """

    @property
    @abstractmethod
    def driver(self) -> Any:
        """Accessory driver handlers build their accessories against."""

    @abstractmethod
    def load_cached_records(self) -> List[AccessoryRecord]:
        """Records persisted by a previous run, read once at startup."""

    def generate_identity(self, device_id: str) -> str:
        return generate_identity(device_id)

    @abstractmethod
    def register_new(self, records: List[AccessoryRecord]) -> None:
        """Link newly created records to the host."""

    @abstractmethod
    def refresh_existing(self, records: List[AccessoryRecord]) -> None:
        """Persist updated context of already-registered records."""

    @abstractmethod
    def attach(self, record: AccessoryRecord, accessory: Any) -> None:
        """Publish a handler's accessory for a record."""

    def aid_for(self, record: AccessoryRecord) -> int:
        """
        Stable HAP accessory id for a record.

        Derived from the identity so an accessory keeps its id across restarts.
        aid 1 is reserved for the bridge itself.
        """
        return uuid.UUID(record.identity).int % (2 ** 31 - 2) + 2
