"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Tool-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "DEVLAUNCH_", "frozen": True}

    # Logging
    log_level: str = "INFO"

    # ADB
    adb_bin: str = "adb"
    adb_timeout_seconds: int = 30

    # Run defaults
    # Live reload is on unless --no-hot is passed (only takes effect in debug mode).
    hot_reload_default: bool = True

    # Execution engine
    # Shell command run before launching when a build is required. Blank skips the build step.
    build_command: str = ""
    # Component passed to `am start -n`, e.g. "com.example.app/.MainActivity".
    launch_activity: str = ""
    remote_target_dir: str = "/data/local/tmp/devlaunch"
    exit_poll_interval_seconds: float = 1.0

    # Artifacts
    benchmark_file: str = "refresh_benchmark.json"
    compilation_trace_file: str = "compilation.txt"

    # Usage reporting
    # Blank disables HTTP reporting; timings are still logged.
    usage_endpoint: str = ""
    usage_timeout_seconds: int = 5


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
