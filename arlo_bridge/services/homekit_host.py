"""
HomeKit host platform

Serves accessories through a HAP-python bridge and persists accessory
records as JSON next to the HAP pairing state.

Lifecycle:
    1. Construct with settings
    2. load_cached_records() once, before reconciliation
    3. Handlers attach() their accessories as devices are reconciled
    4. start() runs the HAP driver in a background thread
    5. stop() on shutdown
"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError
from pyhap.accessory import Bridge
from pyhap.accessory_driver import AccessoryDriver

from arlo_bridge.core.config import Settings, settings as default_settings
from arlo_bridge.schemas.device import AccessoryRecord
from arlo_bridge.services.host import HostPlatform

logger = logging.getLogger(__name__)

DEFAULT_PINCODE = "031-45-154"

_records_adapter = TypeAdapter(List[AccessoryRecord])


class HomekitHost(HostPlatform):
    """
    HAP-python backed accessory host.

    Example:
        >>> host = HomekitHost()
        >>> records = host.load_cached_records()
        >>> host.start()
        >>> host.stop()
    """

    def __init__(self, config: Optional[Settings] = None, driver: Optional[AccessoryDriver] = None):
        """
        Args:
            config: Process settings. If None, uses the global settings.
            driver: Pre-built driver, mainly for tests.
        """
        self.config = config or default_settings
        self._driver = driver
        self._bridge: Optional[Bridge] = None
        self._records: Dict[str, AccessoryRecord] = {}
        self._lock = threading.Lock()
        self._driver_thread: Optional[threading.Thread] = None
        self._running = False
        self._error: Optional[str] = None

    @property
    def driver(self) -> AccessoryDriver:
        if self._driver is None:
            Path(self.config.HOMEKIT_PERSIST_DIR).mkdir(parents=True, exist_ok=True)
            pincode = self.config.HOMEKIT_PINCODE or DEFAULT_PINCODE
            self._driver = AccessoryDriver(
                port=self.config.HOMEKIT_PORT,
                persist_file=self.config.hap_state_file,
                pincode=pincode.encode("utf-8"),
            )
        return self._driver

    @property
    def bridge(self) -> Bridge:
        if self._bridge is None:
            self._bridge = Bridge(self.driver, self.config.HOMEKIT_BRIDGE_NAME)
        return self._bridge

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def record_count(self) -> int:
        return len(self._records)

    def load_cached_records(self) -> List[AccessoryRecord]:
        """
        Read persisted accessory records.

        A missing file means a first run. An unreadable file is logged and
        treated as empty so the bridge still starts; its records will be
        re-created as devices are reported.
        """
        cache_file = Path(self.config.accessory_cache_file)
        if not cache_file.exists():
            logger.info("No cached accessories found", extra={"path": str(cache_file)})
            return []

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                records = _records_adapter.validate_python(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(
                f"Failed to read cached accessories: {e}",
                exc_info=True,
                extra={"path": str(cache_file)}
            )
            return []

        with self._lock:
            for record in records:
                self._records[record.identity] = record
        logger.info(f"Loaded {len(records)} cached accessories", extra={"path": str(cache_file)})
        return records

    def register_new(self, records: List[AccessoryRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.identity] = record
        logger.info(
            f"Registered {len(records)} new accessories",
            extra={"identities": [r.identity for r in records]}
        )
        self._persist()

    def refresh_existing(self, records: List[AccessoryRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.identity] = record
        logger.debug(
            f"Refreshed {len(records)} accessories",
            extra={"identities": [r.identity for r in records]}
        )
        self._persist()

    def attach(self, record: AccessoryRecord, accessory: Any) -> None:
        self.bridge.add_accessory(accessory)
        if self._running:
            # Paired controllers must re-fetch the accessory database
            self.driver.config_changed()
        logger.debug(
            f"Attached accessory {record.display_name}",
            extra={"identity": record.identity, "aid": getattr(accessory, "aid", None)}
        )

    def _persist(self) -> None:
        cache_file = Path(self.config.accessory_cache_file)
        with self._lock:
            payload = _records_adapter.dump_python(
                list(self._records.values()), mode="json", by_alias=True
            )
        try:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = cache_file.with_suffix(".tmp")
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_file, cache_file)
        except OSError as e:
            logger.error(
                f"Failed to persist accessory cache: {e}",
                exc_info=True,
                extra={"path": str(cache_file)}
            )

    def start(self) -> None:
        """Start the HAP driver in a background thread."""
        if self._running:
            return
        self.driver.add_accessory(self.bridge)
        self._driver_thread = threading.Thread(
            target=self._run_driver,
            name="homekit-driver",
            daemon=True
        )
        self._driver_thread.start()
        self._running = True
        logger.info(
            f"HomeKit bridge started on port {self.config.HOMEKIT_PORT}",
            extra={"port": self.config.HOMEKIT_PORT, "accessory_count": len(self.bridge.accessories)}
        )

    def _run_driver(self) -> None:
        try:
            self.driver.start()
        except Exception as e:
            self._error = str(e)
            logger.error(f"HomeKit driver error: {e}", exc_info=True)
            self._running = False

    def stop(self) -> None:
        """Stop the HAP driver and wait for its thread."""
        if not self._running:
            return
        logger.info("Stopping HomeKit bridge")
        try:
            self.driver.stop()
        except Exception as e:
            logger.warning(f"Error stopping HomeKit driver: {e}")
        if self._driver_thread and self._driver_thread.is_alive():
            self._driver_thread.join(timeout=5.0)
        self._driver_thread = None
        self._running = False
