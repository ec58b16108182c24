"""Protocol interfaces for device discovery dependency injection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from devlaunch.shared.enums import TargetPlatform


@runtime_checkable
class TargetDevice(Protocol):
    """One attached device. Capability queries may hit the device, so they are async."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def supports_live_reload(self) -> bool: ...

    async def is_local_emulator(self) -> bool:
        """Return True if the device is an emulator running on this host."""
        ...

    async def supports_hardware_rendering(self) -> bool:
        """Return True if the (emulated) GPU can render in hardware."""
        ...

    async def target_platform(self) -> TargetPlatform:
        """Return the platform the device reports."""
        ...


@runtime_checkable
class DeviceDiscovery(Protocol):
    """Protocol for resolving the devices a run should target."""

    async def resolve_target_devices(self) -> Sequence[TargetDevice] | None:
        """Resolve the requested devices.

        Returns:
            Matching devices, or None when the selection could not be resolved
            (nothing attached, nothing matched, or ambiguous selection).
        """
        ...

    def has_requested_all_devices(self) -> bool:
        """Return True if the user explicitly asked for every attached device."""
        ...
