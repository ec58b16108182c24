"""Derive the debugging configuration of a run."""

from __future__ import annotations

from devlaunch.shared.models import DebuggingOptions, RunRequest


def create_debugging_options(request: RunRequest) -> DebuggingOptions:
    """Return disabled options for release-like builds, else copy the flags verbatim.

    Interactive flags are ignored rather than rejected in release-like builds.
    """
    build_info = request.build_info
    if build_info.is_release:
        return DebuggingOptions.disabled(build_info)
    return DebuggingOptions.enabled(
        build_info,
        start_paused=request.start_paused,
        use_test_fonts=request.use_test_fonts,
        enable_software_rendering=request.enable_software_rendering,
        skia_deterministic_rendering=request.skia_deterministic_rendering,
        trace_skia=request.trace_skia,
        observatory_port=request.observatory_port,
    )
