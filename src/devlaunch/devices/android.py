"""Android device backed by ADB property queries."""

from __future__ import annotations

import logging

from devlaunch.devices.adb import AdbConnection
from devlaunch.shared.enums import TargetPlatform

logger = logging.getLogger(__name__)

_ABI_PLATFORMS = {
    "arm64-v8a": TargetPlatform.ANDROID_ARM64,
    "armeabi-v7a": TargetPlatform.ANDROID_ARM,
    "armeabi": TargetPlatform.ANDROID_ARM,
    "x86_64": TargetPlatform.ANDROID_X64,
    "x86": TargetPlatform.ANDROID_X86,
}


class AndroidDevice:
    """ADB-attached device.

    Implements the ``TargetDevice`` protocol. Properties are fetched on first
    use and cached for the lifetime of the object.
    """

    def __init__(self, serial: str, adb: AdbConnection, *, model: str | None = None) -> None:
        self._serial = serial
        self._adb = adb
        self._model = model
        self._props: dict[str, str] = {}

    def __repr__(self) -> str:
        return f"AndroidDevice({self._serial!r})"

    @property
    def id(self) -> str:
        return self._serial

    @property
    def name(self) -> str:
        if self._model:
            return self._model.replace("_", " ")
        return self._serial

    @property
    def supports_live_reload(self) -> bool:
        return True

    async def is_local_emulator(self) -> bool:
        if self._serial.startswith("emulator-"):
            return True
        return await self._prop("ro.kernel.qemu") == "1"

    async def supports_hardware_rendering(self) -> bool:
        return await self._prop("ro.kernel.qemu.gles") == "1"

    async def target_platform(self) -> TargetPlatform:
        abi = await self._prop("ro.product.cpu.abi")
        platform = _ABI_PLATFORMS.get(abi)
        if platform is None:
            logger.warning("unknown abi %r on %s, assuming android-arm", abi, self._serial)
            return TargetPlatform.ANDROID_ARM
        return platform

    async def _prop(self, name: str) -> str:
        if name not in self._props:
            self._props[name] = (await self._adb.getprop(self._serial, name)).strip()
        return self._props[name]
