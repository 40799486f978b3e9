"""
Reconciler

Matches each reported device against the accessory cache and decides
whether to reuse the cached record or create a new one. The matching key
is the identity derived from the device id, never the display name.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Union

from arlo_bridge.core.metrics import record_reconciliation
from arlo_bridge.schemas.device import AccessoryContext, AccessoryRecord, Device
from arlo_bridge.services.accessory_cache import AccessoryCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Matched:
    """A cached record existed; its device snapshot was refreshed."""
    record: AccessoryRecord
    context_changed: bool = True


@dataclass(frozen=True)
class Created:
    """No record existed; a new one was synthesized and cached."""
    record: AccessoryRecord


ReconciliationOutcome = Union[Matched, Created]


class Reconciler:
    """
    Single-pass create-or-update decision per device event.

    Args:
        cache: Session accessory cache
        generate_identity: Host-provided deterministic hash of a device id
    """

    def __init__(self, cache: AccessoryCache, generate_identity: Callable[[str], str]):
        self.cache = cache
        self._generate_identity = generate_identity

    def identity_for(self, device: Device) -> str:
        return self._generate_identity(device.id)

    def reconcile(self, device: Device) -> ReconciliationOutcome:
        """
        Reconcile one device against the cache.

        A cached record keeps its display name; only `context.device` is
        overwritten. A new record takes the device's current name.
        """
        identity = self.identity_for(device)
        existing = self.cache.find(identity)

        if existing is not None:
            changed = self.cache.upsert_context(identity, device)
            logger.info(
                f"Restoring existing accessory from cache: {existing.display_name}",
                extra={"identity": identity, "device_id": device.id, "context_changed": changed}
            )
            record_reconciliation("matched")
            return Matched(record=existing, context_changed=changed)

        record = AccessoryRecord(
            identity=identity,
            display_name=device.name,
            context=AccessoryContext(device=device),
        )
        self.cache.add(record)
        logger.info(
            f"Adding new accessory: {record.display_name}",
            extra={"identity": identity, "device_id": device.id}
        )
        record_reconciliation("created")
        return Created(record=record)
