"""Base accessory handler

A handler gives one reconciled accessory record its user-facing behavior:
it composes a HAP-python accessory for the record and publishes it on the
session's host.
"""

import logging
from typing import TYPE_CHECKING, Optional

from pyhap.accessory import Accessory
from pyhap.const import CATEGORY_OTHER

from arlo_bridge.schemas.device import AccessoryRecord, Device

if TYPE_CHECKING:
    from arlo_bridge.services.session import BridgeSession

logger = logging.getLogger(__name__)

MANUFACTURER = "Arlo"


class AccessoryHandler:
    """
    Composes and publishes the HomeKit accessory for one record.

    Subclasses set `handler_name` and `category` and add their services in
    `configure()`.
    """

    handler_name = "accessory"
    category = CATEGORY_OTHER
    default_model = "Arlo"

    def __init__(self, session: "BridgeSession", record: AccessoryRecord):
        self.session = session
        self.record = record
        self.accessory = Accessory(
            session.host.driver,
            record.display_name,
            aid=session.host.aid_for(record),
        )
        self.accessory.category = self.category
        self.accessory.set_info_service(
            manufacturer=MANUFACTURER,
            model=self._model(),
            serial_number=self.device_id,
        )
        self.configure()
        session.host.attach(record, self.accessory)

    @property
    def device(self) -> Optional[Device]:
        return self.record.device

    @property
    def device_id(self) -> str:
        return self.device.id if self.device else self.record.identity

    @property
    def config(self):
        return self.session.config

    def _model(self) -> str:
        if self.device and self.device.model_id:
            return self.device.model_id
        return self.default_model

    def configure(self) -> None:
        """Add services to `self.accessory`."""
