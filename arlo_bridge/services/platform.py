"""
Arlo platform

Startup orchestration for one configured account: decides whether the
platform is enabled, normalizes its options, restores cached accessories
into a fresh session and starts the session once the host has finished
launching.
"""
import logging
from typing import Any, Mapping, Optional

from arlo_bridge.config.platform import EffectiveConfig, normalize_config
from arlo_bridge.schemas.device import AccessoryRecord
from arlo_bridge.services.directory.base import DirectoryClient
from arlo_bridge.services.host import HostPlatform
from arlo_bridge.services.session import BridgeSession, SessionStatus

logger = logging.getLogger(__name__)

PLATFORM_NAME = "Arlo"


class ArloPlatform:
    """
    Platform lifecycle.

    Lifecycle:
        1. Construct with the raw options (None when not configured)
        2. configure_accessory() for every record the host restored
        3. did_finish_launching() starts discovery
        4. shutdown() on exit

    Without a configuration the platform is disabled for the whole
    process: it logs one warning and every later call is a no-op.
    """

    def __init__(
        self,
        raw_config: Optional[Mapping[str, Any]],
        client: DirectoryClient,
        host: HostPlatform,
    ):
        self.client = client
        self.host = host
        self.config: Optional[EffectiveConfig] = None
        self.session: Optional[BridgeSession] = None
        self.disabled = False

        if raw_config is None:
            logger.warning(f"Ignoring {PLATFORM_NAME} platform setup because it is not configured.")
            self.disabled = True
            return

        self.config = normalize_config(raw_config)
        self.session = BridgeSession(self.config, client, host)
        logger.debug(
            "Finished initializing platform",
            extra={"session_id": self.session.session_id}
        )

    def configure_accessory(self, record: AccessoryRecord) -> None:
        """Track a record the host restored from disk."""
        if self.disabled:
            return
        self.session.restore([record])

    def restore_cached(self) -> int:
        """Restore every record the host persisted. Returns the count."""
        if self.disabled:
            return 0
        records = self.host.load_cached_records()
        for record in records:
            self.configure_accessory(record)
        return len(records)

    async def did_finish_launching(self) -> bool:
        """Start discovery once every cached accessory has been restored."""
        if self.disabled:
            return False
        logger.debug("Executed did_finish_launching")
        return await self.session.start()

    async def shutdown(self) -> None:
        if self.session is not None:
            await self.session.stop()

    def status(self) -> Optional[SessionStatus]:
        if self.session is None:
            return None
        return self.session.status()
