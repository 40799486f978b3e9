"""Process settings using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
import os


class Settings(BaseSettings):
    """Bridge settings loaded from environment variables"""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "data/logs"

    # Platform configuration (the user's option mapping, JSON)
    PLATFORM_CONFIG_FILE: str = "data/platform.json"

    # Device list used by the static directory client
    DEVICES_FILE: str = "data/devices.json"

    # HomeKit host
    HOMEKIT_PORT: int = 51826
    HOMEKIT_BRIDGE_NAME: str = "Arlo"
    HOMEKIT_PERSIST_DIR: str = "data/homekit"
    HOMEKIT_PINCODE: Optional[str] = None  # Falls back to a fixed code when unset

    # Prometheus exposition port; unset disables the metrics endpoint
    METRICS_PORT: Optional[int] = 9108

    @field_validator('LOG_LEVEL', mode='after')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL names a standard logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def accessory_cache_file(self) -> str:
        """Path of the JSON file holding persisted accessory records."""
        return os.path.join(self.HOMEKIT_PERSIST_DIR, "cached_accessories.json")

    @property
    def hap_state_file(self) -> str:
        """Path of the HAP-python pairing state file."""
        return os.path.join(self.HOMEKIT_PERSIST_DIR, "accessory.state")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


# Global settings instance
settings = Settings()
