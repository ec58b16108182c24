"""Gate that rejects device/mode combinations before any session is built."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from devlaunch.devices.interfaces import TargetDevice
from devlaunch.shared.enums import BuildMode, RunStrategy
from devlaunch.shared.exceptions import (
    InvalidFlagCombination,
    ModeNotSupportedOnEmulator,
    NoDevicesFound,
    ReloadUnsupported,
    UnsupportedCombination,
)
from devlaunch.shared.models import RunRequest

logger = logging.getLogger(__name__)

_COMPILATION_TRACE_MODES = (BuildMode.DEBUG, BuildMode.DYNAMIC_PROFILE)


@dataclass(frozen=True, slots=True)
class DeviceProbe:
    """Capability answers for one device, gathered before validation."""

    device: TargetDevice
    is_local_emulator: bool
    supports_hardware_rendering: bool


async def probe_devices(devices: Sequence[TargetDevice]) -> list[DeviceProbe]:
    """Query every device concurrently; results keep the device order."""

    async def _probe(device: TargetDevice) -> DeviceProbe:
        emulator = await device.is_local_emulator()
        hardware = await device.supports_hardware_rendering() if emulator else False
        return DeviceProbe(device=device, is_local_emulator=emulator, supports_hardware_rendering=hardware)

    return list(await asyncio.gather(*(_probe(d) for d in devices)))


class DeviceValidator:
    """Raise the first applicable ``LaunchError`` for a run; otherwise do nothing.

    Checks run in this order: device presence, ``-d all`` with a prebuilt
    binary, emulator build-mode support, live-reload support, compilation
    trace mode.
    """

    def validate_selection(
        self,
        devices: Sequence[TargetDevice] | None,
        *,
        all_devices_requested: bool,
        request: RunRequest,
    ) -> list[TargetDevice]:
        """Check the resolved device list itself.

        Returns:
            The devices as a list.

        Raises:
            NoDevicesFound: If nothing was resolved.
            UnsupportedCombination: If ``-d all`` was combined with a prebuilt binary.
        """
        if not devices:
            raise NoDevicesFound()
        if all_devices_requested and request.running_with_prebuilt_application:
            raise UnsupportedCombination("Using -d all with --use-application-binary is not supported")
        return list(devices)

    async def validate_capabilities(
        self,
        devices: Sequence[TargetDevice],
        *,
        request: RunRequest,
        strategy: RunStrategy,
    ) -> list[DeviceProbe]:
        """Check each device against the requested mode.

        Returns:
            Capability probes, in device order.

        Raises:
            ModeNotSupportedOnEmulator: If an emulator cannot run the build mode.
            ReloadUnsupported: For the first device that cannot live-reload.
            InvalidFlagCombination: If a compilation trace is requested outside debug/dynamic profile.
        """
        mode = request.build_info.mode
        probes = await probe_devices(devices)

        for probe in probes:
            if not probe.is_local_emulator:
                continue
            if probe.supports_hardware_rendering:
                if request.enable_software_rendering:
                    logger.info(
                        "Using software rendering with device %s. You may get better performance "
                        "with hardware mode by configuring hardware rendering for your device.",
                        probe.device.name,
                    )
                else:
                    logger.info(
                        "Using hardware rendering with device %s. If you get graphics artifacts, "
                        'consider enabling software rendering with "--enable-software-rendering".',
                        probe.device.name,
                    )
            if not mode.is_emulator_compatible:
                raise ModeNotSupportedOnEmulator(f"{mode.display_name} mode is not supported for emulators.")

        if strategy == RunStrategy.LIVE_RELOAD:
            for device in devices:
                if not device.supports_live_reload:
                    raise ReloadUnsupported(device.name)

        if request.save_compilation_trace and mode not in _COMPILATION_TRACE_MODES:
            raise InvalidFlagCombination(
                "Error: --save-compilation-trace is only allowed when running "
                "--dynamic --profile (recommended) or --debug mode."
            )

        return probes

    async def validate(
        self,
        devices: Sequence[TargetDevice] | None,
        *,
        all_devices_requested: bool,
        request: RunRequest,
        strategy: RunStrategy,
    ) -> list[DeviceProbe]:
        """Run every check in order."""
        selected = self.validate_selection(devices, all_devices_requested=all_devices_requested, request=request)
        return await self.validate_capabilities(selected, request=request, strategy=strategy)
