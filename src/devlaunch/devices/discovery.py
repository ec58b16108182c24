"""Resolve target devices from the ``--device-id`` selection."""

from __future__ import annotations

import logging

from devlaunch.devices.adb import AdbConnection
from devlaunch.devices.android import AndroidDevice

logger = logging.getLogger(__name__)

ALL_DEVICES = "all"


class AdbDeviceDiscovery:
    """ADB-backed device discovery.

    Implements the ``DeviceDiscovery`` protocol.

    A ``device_id`` of ``"all"`` selects every attached device. Any other value
    matches an exact serial first, then a serial prefix, then a
    case-insensitive device name.
    """

    def __init__(self, adb: AdbConnection, *, device_id: str | None = None) -> None:
        self._adb = adb
        self._device_id = device_id

    def has_requested_all_devices(self) -> bool:
        return self._device_id == ALL_DEVICES

    async def resolve_target_devices(self) -> list[AndroidDevice] | None:
        attached = [
            AndroidDevice(entry["serial"], self._adb, model=entry.get("model"))
            for entry in await self._adb.devices()
        ]
        if not attached:
            logger.error(
                "No connected devices. Start an emulator or attach a device with USB debugging enabled."
            )
            return None

        if self.has_requested_all_devices():
            return attached

        if self._device_id is None:
            if len(attached) > 1:
                logger.error(
                    "More than one device connected; please specify a device with the '-d <deviceId>' flag, "
                    "or use '-d all' to act on all devices. Attached: %s",
                    ", ".join(f"{d.name} ({d.id})" for d in attached),
                )
                return None
            return attached

        matched = _match(attached, self._device_id)
        if not matched:
            logger.error("No devices found with name or id matching '%s'", self._device_id)
            return None
        if len(matched) > 1:
            logger.error(
                "Found %d devices with name or id matching '%s'", len(matched), self._device_id
            )
            return None
        return matched


def _match(devices: list[AndroidDevice], device_id: str) -> list[AndroidDevice]:
    exact = [d for d in devices if d.id == device_id]
    if exact:
        return exact
    lowered = device_id.lower()
    return [d for d in devices if d.id.startswith(device_id) or d.name.lower().startswith(lowered)]
