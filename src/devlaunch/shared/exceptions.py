"""Hierarchical exception types for devlaunch."""

from __future__ import annotations


class DevlaunchError(Exception):
    """Base exception for all devlaunch errors."""


# ── Launch (fatal to the invocation) ────────────────────────────


class LaunchError(DevlaunchError):
    """Aborts the invocation; ``exit_code`` is None when no specific code applies."""

    def __init__(self, message: str | None = None, *, exit_code: int | None = None) -> None:
        super().__init__(message or "")
        self.message = message
        self.exit_code = exit_code


class NoDevicesFound(LaunchError):
    """No target device resolved."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No connected devices.")


class UnsupportedCombination(LaunchError):
    """The requested device selection cannot be combined with the run mode."""


class ModeNotSupportedOnEmulator(LaunchError):
    """The build mode cannot run on a local emulator."""


class ReloadUnsupported(LaunchError):
    """A device cannot live-reload."""

    def __init__(self, device_name: str) -> None:
        super().__init__(f"Hot reload is not supported by {device_name}. Run with --no-hot.")
        self.device_name = device_name


class InvalidFlagCombination(LaunchError):
    """Flags that are only valid in other build modes."""


class LaunchFailed(LaunchError):
    """The app could not be started (control-protocol, ADB or engine failure)."""


class SessionExitFailure(LaunchError):
    """The session finished with a nonzero exit code."""

    def __init__(self, code: int) -> None:
        super().__init__(None, exit_code=code)
        self.code = code


# ── Infrastructure ──────────────────────────────────────────────


class AdbError(DevlaunchError):
    """ADB connection or command error."""


class EngineError(DevlaunchError):
    """Build or launch step of an execution engine failed."""
