"""
Command line entry point for devlaunch.

``devlaunch run`` parses the flags into one immutable ``RunRequest``, wires
the ADB collaborators from ``Settings``, and exits with the session's exit
code.
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from devlaunch.config import Settings, get_settings
from devlaunch.devices.adb import AdbConnection
from devlaunch.devices.discovery import AdbDeviceDiscovery
from devlaunch.launcher.command import RunCommand
from devlaunch.launcher.engine import AdbExecutionEngine
from devlaunch.launcher.interfaces import ControlProtocolServer, ReportingSink
from devlaunch.launcher.reporting import CompositeReporter, HttpUsageReporter, LoggingReporter
from devlaunch.shared.enums import BuildMode, TargetPlatform
from devlaunch.shared.exceptions import DevlaunchError, LaunchError
from devlaunch.shared.models import BuildInfo, LaunchResult, RunRequest

logger = logging.getLogger(__name__)

_TARGET_PLATFORMS = ["default", TargetPlatform.ANDROID_ARM.value, TargetPlatform.ANDROID_ARM64.value]


def resolve_build_mode(*, debug: bool, profile: bool, release: bool, dynamic: bool) -> BuildMode:
    """Map the mode flags to a ``BuildMode``; debug when none is given."""
    if sum((debug, profile, release)) > 1:
        raise click.UsageError("Only one of --debug, --profile, or --release can be specified.")
    if dynamic:
        if profile:
            return BuildMode.DYNAMIC_PROFILE
        if release:
            return BuildMode.DYNAMIC_RELEASE
        raise click.UsageError("--dynamic requires --profile or --release.")
    if profile:
        return BuildMode.PROFILE
    if release:
        return BuildMode.RELEASE
    return BuildMode.DEBUG


def build_reporter(settings: Settings) -> ReportingSink:
    if settings.usage_endpoint:
        return CompositeReporter(
            LoggingReporter(),
            HttpUsageReporter(settings.usage_endpoint, timeout=settings.usage_timeout_seconds),
        )
    return LoggingReporter()


async def run_from_settings(
    settings: Settings,
    request: RunRequest,
    *,
    control_server: ControlProtocolServer | None = None,
) -> LaunchResult:
    """Wire ADB-backed collaborators from settings and run the command.

    ``--machine`` needs a ``control_server``; the standalone CLI has none.
    """
    adb = AdbConnection(adb_bin=settings.adb_bin, timeout=settings.adb_timeout_seconds)
    command = RunCommand(
        discovery=AdbDeviceDiscovery(adb, device_id=request.device_id),
        engine=AdbExecutionEngine(
            adb,
            launch_activity=settings.launch_activity,
            build_command=settings.build_command,
            remote_target_dir=settings.remote_target_dir,
            poll_interval=settings.exit_poll_interval_seconds,
        ),
        settings=settings,
        control_server=control_server,
        reporter=build_reporter(settings),
    )
    return await command.run(request)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """devlaunch - run an app on attached devices."""
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command("run")
@click.option("--debug", is_flag=True, help="Build a debug version of your app (default mode).")
@click.option("--profile", is_flag=True, help="Build a version of your app specialized for performance profiling.")
@click.option("--release", is_flag=True, help="Build a release version of your app.")
@click.option("--dynamic", is_flag=True, help="Enable dynamic code; only allowed with --profile or --release.")
@click.option("--flavor", default=None, help="Build a custom app flavor.")
@click.option("-t", "--target", default="lib/main.dart", show_default=True, help="The main entry-point file.")
@click.option("--route", default=None, help="Which route to load when running the app.")
@click.option("-d", "--device-id", default=None, help="Target device id or name (prefixes allowed), or 'all'.")
@click.option("--trace-startup", is_flag=True, help="Start tracing during startup.")
@click.option("--save-compilation-trace", is_flag=True, help="Save runtime compilation trace to a file on exit.")
@click.option(
    "--target-platform",
    type=click.Choice(_TARGET_PLATFORMS),
    default="default",
    help="Target platform when building for an Android device.",
)
@click.option("--observatory-port", type=int, default=None, help="Listen to the given port for a debug connection.")
@click.option("--ipv6", is_flag=True, help="Bind to IPv6 localhost instead of IPv4.")
@click.option("--packages", "packages_file", default=None, help="Path to the packages configuration file.")
@click.option("--start-paused", is_flag=True, help="Start in a paused mode and wait for a debugger to connect.")
@click.option("--enable-software-rendering", is_flag=True, help="Enable rendering using the software backend.")
@click.option("--skia-deterministic-rendering", is_flag=True, help="Deterministic software rendering.")
@click.option("--trace-skia", is_flag=True, help="Enable tracing of the rendering backend.")
@click.option("--use-test-fonts/--no-use-test-fonts", default=False, help="Use the test font (debug mode only).")
@click.option("--build/--no-build", default=True, help="If necessary, build the app before running.")
@click.option("--use-application-binary", "application_binary", default=None, help="Pre-built application binary.")
@click.option("--track-widget-creation", is_flag=True, help="Track widget creation locations.")
@click.option("--project-root", default=None, help="Specify the project root directory.")
@click.option("--output-dill", default=None, help="Compiled output path.")
@click.option("--filesystem-root", "filesystem_roots", multiple=True, help="Filesystem root (repeatable).")
@click.option("--filesystem-scheme", default=None, help="Scheme for filesystem roots.")
@click.option("--isolate-filter", default=None, help="Restrict debugging to views whose name matches.")
@click.option(
    "--machine",
    is_flag=True,
    help="Hand the session to a control-protocol server. Requires an embedding host; fails standalone.",
)
@click.option("--hot/--no-hot", default=None, help="Run with support for hot reloading.")
@click.option("--pid-file", default=None, help="Write the process id here; SIGUSR1 reloads, SIGUSR2 restarts.")
@click.option("--resident/--no-resident", default=True, help="Stay resident after launching the application.")
@click.option("--benchmark", is_flag=True, help="Measure startup and restart time, write results, and exit.")
@click.pass_context
def run(
    ctx: click.Context,
    debug: bool,
    profile: bool,
    release: bool,
    dynamic: bool,
    flavor: str | None,
    target_platform: str,
    hot: bool | None,
    **options: object,
) -> None:
    """Run your app on an attached device."""
    settings: Settings = ctx.obj["settings"]
    mode = resolve_build_mode(debug=debug, profile=profile, release=release, dynamic=dynamic)
    request = RunRequest(
        build_info=BuildInfo(mode=mode, flavor=flavor),
        target_platform=None if target_platform == "default" else TargetPlatform(target_platform),
        hot=settings.hot_reload_default if hot is None else hot,
        **options,
    )

    try:
        asyncio.run(run_from_settings(settings, request))
    except LaunchError as exc:
        if exc.message:
            click.echo(exc.message, err=True)
        sys.exit(exc.exit_code or 1)
    except DevlaunchError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
