"""
Platform configuration module

Defines the options a user supplies for the Arlo platform and the
normalizer that fills every unset option with a concrete default before
reconciliation starts.

Option keys use the camelCase names of the platform's JSON config;
attributes use snake_case.
"""
import json
import re
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from arlo_bridge.core.errors import ConfigurationError
from arlo_bridge.services.directory.base import ARMED, DISARMED

# Default subscribe interval of the directory session, in seconds
DEFAULT_SUBSCRIBE_TIME = 60

# Default time allowed for directory login, in seconds
DEFAULT_LOGIN_TIMEOUT = 30

# MPEG-TS friendly RTP payload size (7 * 188 bytes)
DEFAULT_PACKET_SIZE = 1316

DEFAULT_VIDEO_ENCODER = "libx264"

# Custom modes defined in the Arlo app are reported as mode0, mode1, ...
_CUSTOM_MODE_PATTERN = re.compile(r"^mode\d+$")


def default_video_processor() -> str:
    """ffmpeg binary name for the running platform."""
    return "ffmpeg.exe" if sys.platform.startswith("win") else "ffmpeg"


def _validate_mode(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return v
    if v in (ARMED, DISARMED) or _CUSTOM_MODE_PATTERN.match(v):
        return v
    raise ValueError(f"Arm mode must be '{ARMED}', '{DISARMED}' or 'modeN', got {v!r}")


class PlatformConfig(BaseModel):
    """Raw platform options as supplied by the user (all optional)"""

    email: Optional[str] = None
    password: Optional[str] = None
    include_camera_classes: Optional[bool] = Field(default=None, alias="includeCameraClasses")
    armed_mode_stay: Optional[str] = Field(default=None, alias="armedModeStay")
    armed_mode_night: Optional[str] = Field(default=None, alias="armedModeNight")
    poll_interval_seconds: Optional[int] = Field(default=None, alias="pollIntervalSeconds", ge=0)
    login_timeout_seconds: Optional[float] = Field(default=None, alias="loginTimeoutSeconds", ge=0)
    video_processor: Optional[str] = Field(default=None, alias="videoProcessor")
    video_decoder: Optional[str] = Field(default=None, alias="videoDecoder")
    video_encoder: Optional[str] = Field(default=None, alias="videoEncoder")
    packet_size: Optional[int] = Field(default=None, alias="packetSize", ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("armed_mode_stay", "armed_mode_night", mode="after")
    @classmethod
    def validate_arm_mode(cls, v: Optional[str]) -> Optional[str]:
        return _validate_mode(v)


class EffectiveConfig(BaseModel):
    """Normalized platform options; every recognized option has a value"""

    email: Optional[str] = None
    password: Optional[str] = None
    include_camera_classes: bool = Field(alias="includeCameraClasses")
    armed_mode_stay: str = Field(alias="armedModeStay")
    armed_mode_night: str = Field(alias="armedModeNight")
    poll_interval_seconds: int = Field(alias="pollIntervalSeconds", gt=0)
    login_timeout_seconds: float = Field(alias="loginTimeoutSeconds", gt=0)
    video_processor: str = Field(alias="videoProcessor")
    video_decoder: str = Field(alias="videoDecoder")
    video_encoder: str = Field(alias="videoEncoder")
    packet_size: int = Field(alias="packetSize", gt=0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("armed_mode_stay", "armed_mode_night", mode="after")
    @classmethod
    def validate_arm_mode(cls, v: str) -> str:
        return _validate_mode(v)


RawConfig = Union[Mapping[str, Any], PlatformConfig, EffectiveConfig]


def normalize_config(raw: RawConfig) -> EffectiveConfig:
    """
    Fill defaults for every unset option.

    Each rule is applied independently. `includeCameraClasses` is defaulted
    only when absent, so an explicit false is honored; every other option is
    defaulted when absent or falsy. No I/O is performed, and normalizing an
    already-normalized config returns an equal config.

    Args:
        raw: Option mapping, PlatformConfig or EffectiveConfig

    Returns:
        EffectiveConfig with concrete values

    Raises:
        pydantic.ValidationError: If an option has an invalid value
    """
    if isinstance(raw, EffectiveConfig):
        raw = raw.model_dump()
    if isinstance(raw, PlatformConfig):
        options = raw
    else:
        options = PlatformConfig.model_validate(dict(raw))

    return EffectiveConfig(
        email=options.email,
        password=options.password,
        include_camera_classes=(
            True if options.include_camera_classes is None else options.include_camera_classes
        ),
        armed_mode_stay=options.armed_mode_stay or ARMED,
        armed_mode_night=options.armed_mode_night or ARMED,
        poll_interval_seconds=options.poll_interval_seconds or DEFAULT_SUBSCRIBE_TIME,
        login_timeout_seconds=options.login_timeout_seconds or DEFAULT_LOGIN_TIMEOUT,
        video_processor=options.video_processor or default_video_processor(),
        video_decoder=options.video_decoder or "",
        video_encoder=options.video_encoder or DEFAULT_VIDEO_ENCODER,
        packet_size=options.packet_size or DEFAULT_PACKET_SIZE,
    )


def load_platform_config(path: Union[str, Path]) -> Optional[dict]:
    """
    Read the raw platform option mapping from a JSON file.

    Returns:
        The option mapping, or None when the file does not exist

    Raises:
        ConfigurationError: If the file is unreadable or not a JSON object
    """
    config_path = Path(path)
    if not config_path.exists():
        return None

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read platform config {config_path}: {e}") from e

    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Platform config {config_path} must be a JSON object, got {type(data).__name__}"
        )
    return data
