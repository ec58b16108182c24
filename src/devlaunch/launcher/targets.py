"""Per-device build options for one run."""

from __future__ import annotations

from dataclasses import dataclass

from devlaunch.devices.interfaces import TargetDevice
from devlaunch.shared.enums import TargetPlatform


@dataclass(frozen=True, slots=True)
class DeviceBuildTarget:
    """A validated device paired with the build options used for it."""

    device: TargetDevice
    track_widget_creation: bool = False
    output_dill: str | None = None
    filesystem_roots: tuple[str, ...] = ()
    filesystem_scheme: str | None = None
    view_filter: str | None = None
    target_platform: TargetPlatform | None = None

    @property
    def name(self) -> str:
        return self.device.name
