"""
Tests for platform configuration normalization
"""
import json

import pytest
from pydantic import ValidationError

from arlo_bridge.config.platform import (
    DEFAULT_LOGIN_TIMEOUT,
    DEFAULT_PACKET_SIZE,
    DEFAULT_SUBSCRIBE_TIME,
    DEFAULT_VIDEO_ENCODER,
    EffectiveConfig,
    PlatformConfig,
    default_video_processor,
    load_platform_config,
    normalize_config,
)
from arlo_bridge.core.errors import ConfigurationError
from arlo_bridge.services.directory import ARMED


class TestNormalizeDefaults:
    """Tests for default filling of unset options."""

    def test_empty_config_gets_every_default(self):
        """Every recognized option gets a concrete value."""
        config = normalize_config({})

        assert config.include_camera_classes is True
        assert config.armed_mode_stay == ARMED
        assert config.armed_mode_night == ARMED
        assert config.poll_interval_seconds == DEFAULT_SUBSCRIBE_TIME
        assert config.login_timeout_seconds == DEFAULT_LOGIN_TIMEOUT
        assert config.video_processor == default_video_processor()
        assert config.video_decoder == ""
        assert config.video_encoder == DEFAULT_VIDEO_ENCODER
        assert config.packet_size == DEFAULT_PACKET_SIZE
        assert config.email is None
        assert config.password is None

    def test_supplied_values_are_kept(self):
        """Set options are not overwritten."""
        config = normalize_config({
            "email": "user@example.com",
            "password": "secret",
            "includeCameraClasses": True,
            "armedModeStay": "mode2",
            "armedModeNight": "mode3",
            "pollIntervalSeconds": 15,
            "videoProcessor": "/usr/local/bin/ffmpeg",
            "videoDecoder": "h264_mmal",
            "videoEncoder": "h264_omx",
            "packetSize": 564,
        })

        assert config.email == "user@example.com"
        assert config.armed_mode_stay == "mode2"
        assert config.armed_mode_night == "mode3"
        assert config.poll_interval_seconds == 15
        assert config.video_processor == "/usr/local/bin/ffmpeg"
        assert config.video_decoder == "h264_mmal"
        assert config.video_encoder == "h264_omx"
        assert config.packet_size == 564

    def test_explicit_false_camera_flag_is_honored(self):
        """An explicit false disables cameras instead of being defaulted."""
        config = normalize_config({"includeCameraClasses": False})
        assert config.include_camera_classes is False

    def test_falsy_values_are_defaulted(self):
        """Zero and empty-string options fall back to defaults."""
        config = normalize_config({
            "pollIntervalSeconds": 0,
            "packetSize": 0,
            "armedModeStay": "",
            "videoEncoder": "",
        })

        assert config.poll_interval_seconds == DEFAULT_SUBSCRIBE_TIME
        assert config.packet_size == DEFAULT_PACKET_SIZE
        assert config.armed_mode_stay == ARMED
        assert config.video_encoder == DEFAULT_VIDEO_ENCODER

    def test_unknown_keys_ignored(self):
        """Unrecognized keys (e.g. the host's platform name) are dropped."""
        config = normalize_config({"platform": "Arlo", "name": "Arlo"})
        assert isinstance(config, EffectiveConfig)

    def test_accepts_platform_config_model(self):
        raw = PlatformConfig(includeCameraClasses=False, packetSize=376)
        config = normalize_config(raw)
        assert config.include_camera_classes is False
        assert config.packet_size == 376

    def test_snake_case_keys_accepted(self):
        config = normalize_config({"include_camera_classes": False, "poll_interval_seconds": 5})
        assert config.include_camera_classes is False
        assert config.poll_interval_seconds == 5


class TestNormalizeIdempotence:
    """Normalizing twice gives the same result as normalizing once."""

    @pytest.mark.parametrize("raw", [
        {},
        {"includeCameraClasses": False},
        {"email": "a@b.c", "password": "pw", "armedModeNight": "mode1", "packetSize": 188},
    ])
    def test_normalize_is_idempotent(self, raw):
        once = normalize_config(raw)
        assert normalize_config(once) == once
        assert normalize_config(once.model_dump()) == once
        assert normalize_config(once.model_dump(by_alias=True)) == once


class TestArmModeValidation:
    """Tests for arm mode values."""

    @pytest.mark.parametrize("mode", ["armed", "disarmed", "mode0", "mode12"])
    def test_valid_modes(self, mode):
        config = normalize_config({"armedModeStay": mode})
        assert config.armed_mode_stay == mode

    @pytest.mark.parametrize("mode", ["away", "MODE1", "mode", "armed "])
    def test_invalid_modes_rejected(self, mode):
        with pytest.raises(ValidationError):
            normalize_config({"armedModeStay": mode})

    def test_negative_interval_rejected(self):
        with pytest.raises(ValidationError):
            normalize_config({"pollIntervalSeconds": -5})


class TestLoadPlatformConfig:
    """Tests for reading the option file."""

    def test_missing_file_is_absent_config(self, tmp_path):
        assert load_platform_config(tmp_path / "missing.json") is None

    def test_reads_json_object(self, tmp_path):
        path = tmp_path / "platform.json"
        path.write_text(json.dumps({"email": "user@example.com"}))
        assert load_platform_config(path) == {"email": "user@example.com"}

    def test_null_document_is_absent_config(self, tmp_path):
        path = tmp_path / "platform.json"
        path.write_text("null")
        assert load_platform_config(path) is None

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "platform.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_platform_config(path)

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "platform.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_platform_config(path)
