"""Camera handlers

Expose cameras as HomeKit camera-category accessories with a motion
sensor. Transcoding options from the platform config are carried as a
StreamOptions value for the streaming layer.
"""

import logging
from dataclasses import dataclass

from pyhap.const import CATEGORY_CAMERA

from arlo_bridge.config.platform import EffectiveConfig
from arlo_bridge.services.handlers.base import AccessoryHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamOptions:
    """ffmpeg settings for camera streams"""
    video_processor: str
    video_decoder: str
    video_encoder: str
    packet_size: int

    @classmethod
    def from_config(cls, config: EffectiveConfig) -> "StreamOptions":
        return cls(
            video_processor=config.video_processor,
            video_decoder=config.video_decoder,
            video_encoder=config.video_encoder,
            packet_size=config.packet_size,
        )


class CameraHandler(AccessoryHandler):
    """Camera accessory with a motion sensor."""

    handler_name = "camera"
    category = CATEGORY_CAMERA
    default_model = "Arlo Camera"

    def configure(self) -> None:
        self.stream_options = StreamOptions.from_config(self.config)
        service = self.accessory.add_preload_service("MotionSensor")
        self.motion_detected = service.configure_char("MotionDetected", value=False)

    def set_motion(self, detected: bool) -> None:
        self.motion_detected.set_value(bool(detected))


class QCameraHandler(CameraHandler):
    """Arlo Q camera, which connects without a separate base station."""

    handler_name = "arloq"
    default_model = "Arlo Q"
