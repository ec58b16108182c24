"""Domain enumerations used across all modules."""

from __future__ import annotations

from enum import Enum, unique


@unique
class BuildMode(str, Enum):
    """Compilation modes an app can be built and run in."""

    DEBUG = "debug"
    PROFILE = "profile"
    RELEASE = "release"
    DYNAMIC_PROFILE = "dynamic_profile"
    DYNAMIC_RELEASE = "dynamic_release"

    @property
    def is_release(self) -> bool:
        return self in (BuildMode.RELEASE, BuildMode.DYNAMIC_RELEASE)

    @property
    def is_emulator_compatible(self) -> bool:
        """JIT modes run on emulators; AOT profile/release builds do not."""
        return self in (BuildMode.DEBUG, BuildMode.DYNAMIC_PROFILE, BuildMode.DYNAMIC_RELEASE)

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


@unique
class TargetPlatform(str, Enum):
    """Platforms a device can report."""

    ANDROID_ARM = "android-arm"
    ANDROID_ARM64 = "android-arm64"
    ANDROID_X64 = "android-x64"
    ANDROID_X86 = "android-x86"
    IOS = "ios"
    DARWIN_X64 = "darwin-x64"
    LINUX_X64 = "linux-x64"
    WINDOWS_X64 = "windows-x64"
    FUCHSIA = "fuchsia"
    TESTER = "tester"


@unique
class RunStrategy(str, Enum):
    """Execution strategies; values double as timing labels."""

    LIVE_RELOAD = "hot"
    ONE_SHOT = "cold"


@unique
class SessionState(str, Enum):
    """Supervisor lifecycle states."""

    STARTING = "starting"
    RUNNING = "running"
    TERMINATED = "terminated"
