"""Pytest fixtures and configuration for test suite

This module provides:
1. Factory functions for devices and accessory records with sensible defaults
2. A FakeHost that records every host call instead of serving HomeKit
3. Stub handlers so dispatch can be tested without HAP-python accessories

Factory Functions:
    - make_device(**overrides) -> Device
    - make_record(device_id, **overrides) -> AccessoryRecord
"""
from typing import Dict, List, Optional, Type
from unittest.mock import MagicMock

import pytest

from arlo_bridge.config.platform import EffectiveConfig, normalize_config
from arlo_bridge.schemas.device import AccessoryContext, AccessoryRecord, Device, DeviceClass
from arlo_bridge.services.directory import StaticDirectoryClient
from arlo_bridge.services.handlers import AccessoryHandler
from arlo_bridge.services.host import HostPlatform, generate_identity
from arlo_bridge.services.session import BridgeSession


# =============================================================================
# Factory Functions for Test Objects
# =============================================================================

def make_device(
    id: str = "dev-1",
    type: str = "basestation",
    display_name: str = "Front Hub",
    **overrides
) -> Device:
    """
    Factory function to create Device instances for testing.

    Example:
        device = make_device(id="cam-1", type="camera", display_name="Porch")
    """
    return Device(id=id, type=type, displayName=display_name, **overrides)


def make_record(
    device_id: str = "dev-1",
    display_name: str = "Front Hub",
    device: Optional[Device] = None,
) -> AccessoryRecord:
    """
    Factory function to create a cached AccessoryRecord for a device id.

    The identity uses the same function as the hosts, so a record made here
    matches a device with the same id during reconciliation.
    """
    return AccessoryRecord(
        identity=generate_identity(device_id),
        display_name=display_name,
        context=AccessoryContext(device=device),
    )


# =============================================================================
# Fakes
# =============================================================================

class FakeHost(HostPlatform):
    """Host that records calls instead of serving HomeKit."""

    def __init__(self, cached: Optional[List[AccessoryRecord]] = None):
        self._driver = MagicMock(name="driver")
        self.cached = list(cached or [])
        self.registered: List[AccessoryRecord] = []
        self.refreshed: List[AccessoryRecord] = []
        self.attached: List[tuple] = []

    @property
    def driver(self):
        return self._driver

    def load_cached_records(self) -> List[AccessoryRecord]:
        return list(self.cached)

    def register_new(self, records: List[AccessoryRecord]) -> None:
        self.registered.extend(records)

    def refresh_existing(self, records: List[AccessoryRecord]) -> None:
        self.refreshed.extend(records)

    def attach(self, record: AccessoryRecord, accessory) -> None:
        self.attached.append((record, accessory))


def make_stub_handler(name: str) -> Type[AccessoryHandler]:
    """Handler class that skips HAP-python and records its instances."""

    class StubHandler(AccessoryHandler):
        handler_name = name
        created: List["StubHandler"] = []

        def __init__(self, session, record):
            self.session = session
            self.record = record
            self.accessory = MagicMock(name=f"{name}-accessory")
            type(self).created.append(self)
            session.host.attach(record, self.accessory)

    StubHandler.__name__ = f"Stub{name.title()}Handler"
    return StubHandler


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def effective_config() -> EffectiveConfig:
    return normalize_config({"email": "user@example.com", "password": "secret"})


@pytest.fixture
def cameras_disabled_config() -> EffectiveConfig:
    return normalize_config({
        "email": "user@example.com",
        "password": "secret",
        "includeCameraClasses": False,
    })


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def stub_handlers() -> Dict[DeviceClass, Type[AccessoryHandler]]:
    return {
        DeviceClass.BASESTATION: make_stub_handler("basestation"),
        DeviceClass.CAMERA: make_stub_handler("camera"),
        DeviceClass.Q: make_stub_handler("arloq"),
    }


@pytest.fixture
def static_client() -> StaticDirectoryClient:
    return StaticDirectoryClient()


@pytest.fixture
def session(effective_config, static_client, fake_host, stub_handlers) -> BridgeSession:
    return BridgeSession(effective_config, static_client, fake_host, handlers=stub_handlers)
