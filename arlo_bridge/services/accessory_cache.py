"""
Accessory cache

In-memory index of the accessory records the host restored at startup,
keyed by identity. Records are restored before reconciliation begins; the
cache is then sealed and only grows through records created during the
session. Persisting new records is the host's job.
"""
import logging
from typing import Dict, Iterator, List, Optional

from arlo_bridge.core.errors import CacheSealedError
from arlo_bridge.core.metrics import update_cached_accessories
from arlo_bridge.schemas.device import AccessoryRecord, Device

logger = logging.getLogger(__name__)


class AccessoryCache:
    """Identity-indexed accessory records with O(1) lookup."""

    def __init__(self):
        self._records: Dict[str, AccessoryRecord] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def restore(self, record: AccessoryRecord) -> None:
        """
        Add a record recovered from host storage.

        Raises:
            CacheSealedError: If reconciliation has already started
        """
        if self._sealed:
            raise CacheSealedError(
                f"Cannot restore {record.identity}: cache was sealed when reconciliation started"
            )
        if record.identity in self._records:
            logger.warning(
                f"Duplicate cached accessory {record.identity}, keeping the last one restored",
                extra={"identity": record.identity}
            )
        logger.info(f"Loading accessory from cache: {record.display_name}")
        self._records[record.identity] = record
        update_cached_accessories(len(self._records))

    def seal(self) -> None:
        """End the restoration phase."""
        self._sealed = True

    def find(self, identity: str) -> Optional[AccessoryRecord]:
        return self._records.get(identity)

    def add(self, record: AccessoryRecord) -> None:
        """Insert a record created during the session (memory only)."""
        self._records[record.identity] = record
        update_cached_accessories(len(self._records))

    def upsert_context(self, identity: str, device: Device) -> bool:
        """
        Overwrite the stored device snapshot.

        Returns:
            True if the new snapshot differs from the previous one

        Raises:
            KeyError: If no record exists for identity
        """
        record = self._records[identity]
        changed = record.context.device != device
        record.context.device = device
        return changed

    def records(self) -> List[AccessoryRecord]:
        return list(self._records.values())

    def identities(self) -> List[str]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def __iter__(self) -> Iterator[AccessoryRecord]:
        return iter(list(self._records.values()))
