"""Tests for AdbDeviceDiscovery."""

from __future__ import annotations

from unittest.mock import AsyncMock

from devlaunch.devices.discovery import AdbDeviceDiscovery
from devlaunch.devices.interfaces import DeviceDiscovery

_ATTACHED = [
    {"serial": "emulator-5554", "model": "sdk_gphone64_x86_64"},
    {"serial": "0123456789ABCDEF", "model": "Pixel_6"},
]


def _adb(entries: list[dict[str, str]]) -> AsyncMock:
    mock = AsyncMock()
    mock.devices.return_value = entries
    return mock


def test_implements_protocol() -> None:
    assert isinstance(AdbDeviceDiscovery(_adb([])), DeviceDiscovery)


async def test_no_devices_resolves_none() -> None:
    discovery = AdbDeviceDiscovery(_adb([]))
    assert await discovery.resolve_target_devices() is None


async def test_single_device_without_id() -> None:
    discovery = AdbDeviceDiscovery(_adb(_ATTACHED[:1]))
    devices = await discovery.resolve_target_devices()
    assert devices is not None
    assert [d.id for d in devices] == ["emulator-5554"]


async def test_ambiguous_without_id_resolves_none() -> None:
    discovery = AdbDeviceDiscovery(_adb(_ATTACHED))
    assert await discovery.resolve_target_devices() is None
    assert discovery.has_requested_all_devices() is False


async def test_all_devices() -> None:
    discovery = AdbDeviceDiscovery(_adb(_ATTACHED), device_id="all")
    devices = await discovery.resolve_target_devices()
    assert devices is not None
    assert len(devices) == 2
    assert discovery.has_requested_all_devices() is True


async def test_match_by_exact_id() -> None:
    discovery = AdbDeviceDiscovery(_adb(_ATTACHED), device_id="0123456789ABCDEF")
    devices = await discovery.resolve_target_devices()
    assert devices is not None
    assert [d.id for d in devices] == ["0123456789ABCDEF"]


async def test_match_by_name_prefix_case_insensitive() -> None:
    discovery = AdbDeviceDiscovery(_adb(_ATTACHED), device_id="pixel")
    devices = await discovery.resolve_target_devices()
    assert devices is not None
    assert [d.name for d in devices] == ["Pixel 6"]


async def test_no_match_resolves_none() -> None:
    discovery = AdbDeviceDiscovery(_adb(_ATTACHED), device_id="nexus")
    assert await discovery.resolve_target_devices() is None
