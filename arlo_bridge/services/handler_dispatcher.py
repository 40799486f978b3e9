"""
Handler dispatcher

Routes a reconciled accessory record to exactly one typed handler by
device class. Base stations are always handled; cameras are gated by the
`includeCameraClasses` option; unknown classes are skipped.

Dispatch never raises: a device that cannot be handled is logged and the
rest of the device stream keeps flowing.
"""
import logging
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional, Type

from arlo_bridge.core.metrics import record_device_skipped, record_handler_created
from arlo_bridge.schemas.device import AccessoryRecord, Device, DeviceClass
from arlo_bridge.services.handlers import (
    AccessoryHandler,
    BaseStationHandler,
    CameraHandler,
    QCameraHandler,
)

if TYPE_CHECKING:
    from arlo_bridge.services.session import BridgeSession

logger = logging.getLogger(__name__)

DEFAULT_HANDLERS: Dict[DeviceClass, Type[AccessoryHandler]] = {
    DeviceClass.BASESTATION: BaseStationHandler,
    DeviceClass.CAMERA: CameraHandler,
    DeviceClass.Q: QCameraHandler,
}

# Classes that only get a handler when includeCameraClasses is on
CAMERA_CLASSES: FrozenSet[DeviceClass] = frozenset({DeviceClass.CAMERA, DeviceClass.Q})


def _check_exhaustive(handlers: Dict[DeviceClass, Type[AccessoryHandler]]) -> None:
    missing = [c.value for c in DeviceClass if c not in handlers]
    if missing:
        raise RuntimeError(f"No handler registered for device classes: {', '.join(missing)}")


_check_exhaustive(DEFAULT_HANDLERS)


class HandlerDispatcher:
    """
    Selects and instantiates the handler for a reconciled record.

    Args:
        session: Owning session, passed on to handlers
        handlers: Device class to handler table; must cover every DeviceClass
    """

    def __init__(
        self,
        session: "BridgeSession",
        handlers: Optional[Dict[DeviceClass, Type[AccessoryHandler]]] = None,
    ):
        self.session = session
        self.handlers = dict(handlers or DEFAULT_HANDLERS)
        _check_exhaustive(self.handlers)

    def dispatch(self, record: AccessoryRecord, device: Device) -> Optional[AccessoryHandler]:
        """
        Instantiate the handler for `device`, or return None if it gets none.

        Gating is non-destructive: the record stays in the cache either way.
        """
        device_class = device.device_class

        if device_class is None:
            logger.info(
                f"Ignoring unsupported device type '{device.type}': {record.display_name} [{device.id}]",
                extra={"device_id": device.id, "device_type": device.type}
            )
            record_device_skipped("unknown_class")
            return None

        if device_class in CAMERA_CLASSES and not self.session.config.include_camera_classes:
            logger.info(
                f"Skipping camera {record.display_name} [{device.id}]: cameras are disabled",
                extra={"device_id": device.id, "device_type": device.type}
            )
            record_device_skipped("feature_gated")
            return None

        handler_cls = self.handlers[device_class]
        try:
            handler = handler_cls(self.session, record)
        except Exception as e:
            logger.error(
                f"Failed to create {handler_cls.handler_name} handler for {record.display_name}: {e}",
                exc_info=True,
                extra={"device_id": device.id, "identity": record.identity}
            )
            record_device_skipped("handler_error")
            return None

        logger.info(
            f"Online: {handler_cls.handler_name} {record.display_name} [{device.id}]",
            extra={"device_id": device.id, "identity": record.identity}
        )
        record_handler_created(handler_cls.handler_name)
        return handler
