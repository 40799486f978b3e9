"""Base station handler

Exposes a hub as a HomeKit security system. HomeKit target states are
translated into the directory modes selected in the platform config and
forwarded to the directory client. The current state follows only once the
directory has accepted the change.
"""

import logging
from functools import partial
from typing import Dict

from pyhap.const import CATEGORY_ALARM_SYSTEM

from arlo_bridge.services.directory.base import ARMED, DISARMED
from arlo_bridge.services.handlers.base import AccessoryHandler

logger = logging.getLogger(__name__)

# HomeKit SecuritySystemTargetState values
STAY_ARM = 0
AWAY_ARM = 1
NIGHT_ARM = 2
DISARM = 3


class BaseStationHandler(AccessoryHandler):
    """Security system accessory for a base station."""

    handler_name = "basestation"
    category = CATEGORY_ALARM_SYSTEM
    default_model = "Arlo Base Station"

    def configure(self) -> None:
        service = self.accessory.add_preload_service("SecuritySystem")
        self.current_state = service.configure_char(
            "SecuritySystemCurrentState", value=DISARM
        )
        self.target_state = service.configure_char(
            "SecuritySystemTargetState", value=DISARM, setter_callback=self.set_target_state
        )

    @property
    def modes(self) -> Dict[int, str]:
        """Directory mode for each HomeKit target state."""
        return {
            STAY_ARM: self.config.armed_mode_stay,
            AWAY_ARM: ARMED,
            NIGHT_ARM: self.config.armed_mode_night,
            DISARM: DISARMED,
        }

    def set_target_state(self, value: int) -> None:
        """Called by HAP-python when a controller writes the target state."""
        mode = self.modes.get(value)
        if mode is None:
            logger.warning(
                f"Ignoring unsupported target state {value} for {self.record.display_name}",
                extra={"device_id": self.device_id}
            )
            return

        logger.info(
            f"Setting {self.record.display_name} to {mode}",
            extra={"device_id": self.device_id, "target_state": value, "mode": mode}
        )
        future = self.session.submit(self.session.client.set_mode(self.device_id, mode))
        if future is None:
            self._revert_target()
            return
        future.add_done_callback(partial(self._on_mode_set, value, mode))

    def _on_mode_set(self, value: int, mode: str, future) -> None:
        if future.cancelled():
            self._revert_target()
            return

        error = future.exception()
        if error is not None:
            logger.error(
                f"Directory rejected mode {mode} for {self.record.display_name}: {error}",
                extra={"device_id": self.device_id, "mode": mode, "target_state": value}
            )
            self._revert_target()
            return

        self.current_state.set_value(value)

    def _revert_target(self) -> None:
        self.target_state.set_value(self.current_state.get_value())
