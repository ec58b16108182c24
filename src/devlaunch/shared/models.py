"""Frozen Pydantic domain models shared by all modules."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

from devlaunch.shared.enums import BuildMode, TargetPlatform


def utc_now() -> datetime:
    """Return timezone-aware UTC timestamps for model defaults."""
    return datetime.now(timezone.utc)


class BuildInfo(BaseModel):
    """Build mode plus optional product flavor."""

    model_config = {"frozen": True}

    mode: BuildMode = BuildMode.DEBUG
    flavor: str | None = None

    @property
    def is_debug(self) -> bool:
        return self.mode == BuildMode.DEBUG

    @property
    def is_release(self) -> bool:
        return self.mode.is_release


class DebuggingOptions(BaseModel):
    """Immutable debugging configuration handed to every session.

    Use :meth:`enabled` for interactive builds and :meth:`disabled` for
    release-like builds. A disabled configuration never carries interactive
    fields.
    """

    model_config = {"frozen": True}

    build_info: BuildInfo
    debugging_enabled: bool = True
    start_paused: bool = False
    use_test_fonts: bool = False
    enable_software_rendering: bool = False
    skia_deterministic_rendering: bool = False
    trace_skia: bool = False
    observatory_port: int | None = None

    @model_validator(mode="after")
    def _disabled_has_no_interactive_fields(self) -> DebuggingOptions:
        if not self.debugging_enabled and (
            self.start_paused
            or self.use_test_fonts
            or self.enable_software_rendering
            or self.skia_deterministic_rendering
            or self.trace_skia
            or self.observatory_port is not None
        ):
            raise ValueError("disabled debugging options cannot carry interactive fields")
        return self

    @classmethod
    def enabled(
        cls,
        build_info: BuildInfo,
        *,
        start_paused: bool = False,
        use_test_fonts: bool = False,
        enable_software_rendering: bool = False,
        skia_deterministic_rendering: bool = False,
        trace_skia: bool = False,
        observatory_port: int | None = None,
    ) -> DebuggingOptions:
        return cls(
            build_info=build_info,
            debugging_enabled=True,
            start_paused=start_paused,
            use_test_fonts=use_test_fonts,
            enable_software_rendering=enable_software_rendering,
            skia_deterministic_rendering=skia_deterministic_rendering,
            trace_skia=trace_skia,
            observatory_port=observatory_port,
        )

    @classmethod
    def disabled(cls, build_info: BuildInfo) -> DebuggingOptions:
        return cls(build_info=build_info, debugging_enabled=False)


class RunRequest(BaseModel):
    """Parsed, immutable configuration of one ``run`` invocation.

    Built once from the command line and passed to every component.
    """

    model_config = {"frozen": True}

    build_info: BuildInfo = Field(default_factory=BuildInfo)
    target: str = "lib/main.dart"
    route: str | None = None
    device_id: str | None = None
    target_platform: TargetPlatform | None = None

    # Debugging
    start_paused: bool = False
    use_test_fonts: bool = False
    enable_software_rendering: bool = False
    skia_deterministic_rendering: bool = False
    trace_skia: bool = False
    observatory_port: int | None = None

    # Strategy
    hot: bool = True
    machine: bool = False
    resident: bool = True
    benchmark: bool = False
    trace_startup: bool = False
    save_compilation_trace: bool = False

    # Build and paths
    build: bool = True
    application_binary: str | None = None
    project_root: str | None = None
    packages_file: str | None = None
    output_dill: str | None = None
    filesystem_roots: tuple[str, ...] = ()
    filesystem_scheme: str | None = None
    isolate_filter: str | None = None
    track_widget_creation: bool = False
    ipv6: bool = False
    pid_file: str | None = None

    @field_validator("target")
    @classmethod
    def _target_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("target must not be empty")
        return value

    @property
    def running_with_prebuilt_application(self) -> bool:
        return self.application_binary is not None

    @property
    def should_build(self) -> bool:
        return not self.running_with_prebuilt_application and self.build


class LaunchResult(BaseModel):
    """Outcome of one invocation, consumed by the reporting sink."""

    model_config = {"frozen": True}

    exit_code: int = 0
    started_at: datetime | None = None
    label_parts: tuple[str, ...] = ()

    @field_validator("label_parts", mode="before")
    @classmethod
    def _drop_empty_labels(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(part for part in value if part)
        return value

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
