"""The ``run`` command: validate, pick a strategy, supervise, report."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from devlaunch.config import Settings
from devlaunch.devices.interfaces import DeviceDiscovery, TargetDevice
from devlaunch.launcher.control_protocol import ControlProtocolAdapter, ensure_single_device
from devlaunch.launcher.debugging import create_debugging_options
from devlaunch.launcher.interfaces import ControlProtocolServer, ExecutionEngine, ReportingSink
from devlaunch.launcher.pidfile import reload_signals, write_pid_file
from devlaunch.launcher.reporting import LoggingReporter, usage_path, usage_values
from devlaunch.launcher.strategy import create_session, select_strategy
from devlaunch.launcher.supervisor import SessionSupervisor, timing_label_parts
from devlaunch.launcher.validator import DeviceValidator
from devlaunch.shared.enums import RunStrategy
from devlaunch.shared.exceptions import AdbError, EngineError, LaunchFailed
from devlaunch.shared.models import DebuggingOptions, LaunchResult, RunRequest, utc_now

logger = logging.getLogger(__name__)


class RunCommand:
    """Run an app on attached devices.

    Flow: request → debugging options → device resolution → selection
    checks → (``--machine``: single-device check →) capability checks →
    control-protocol handoff, or session construction and supervision →
    report. Every failure is raised as a ``LaunchError``; a result is only
    produced on success.
    """

    name = "run"

    def __init__(
        self,
        *,
        discovery: DeviceDiscovery,
        engine: ExecutionEngine,
        settings: Settings,
        control_server: ControlProtocolServer | None = None,
        reporter: ReportingSink | None = None,
        validator: DeviceValidator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._discovery = discovery
        self._engine = engine
        self._settings = settings
        self._control_server = control_server
        self._reporter: ReportingSink = reporter or LoggingReporter()
        self._validator = validator or DeviceValidator()
        self._clock = clock

    async def run(self, request: RunRequest) -> LaunchResult:
        """Launch per ``request``.

        Raises:
            LaunchError: On any validation, start or session failure. ADB and
                engine errors surface as ``LaunchFailed``.
        """
        try:
            return await self._run(request)
        except (AdbError, EngineError) as exc:
            raise LaunchFailed(str(exc)) from exc

    async def _run(self, request: RunRequest) -> LaunchResult:
        began_at = self._clock()
        await write_pid_file(request.pid_file)

        strategy = select_strategy(request)
        debugging = create_debugging_options(request)

        resolved = await self._discovery.resolve_target_devices()
        devices = self._validator.validate_selection(
            resolved,
            all_devices_requested=self._discovery.has_requested_all_devices(),
            request=request,
        )

        if request.machine:
            ensure_single_device(devices)
            await self._validator.validate_capabilities(devices, request=request, strategy=strategy)
            result = await self._run_machine(devices, request=request, strategy=strategy, debugging=debugging)
        else:
            await self._validator.validate_capabilities(devices, request=request, strategy=strategy)
            result = await self._run_session(devices, request=request, strategy=strategy, debugging=debugging)

        await self._report(devices, result, began_at=began_at)
        return result

    async def _run_machine(
        self,
        devices: Sequence[TargetDevice],
        *,
        request: RunRequest,
        strategy: RunStrategy,
        debugging: DebuggingOptions,
    ) -> LaunchResult:
        if self._control_server is None:
            raise LaunchFailed("no control-protocol server available for --machine")
        adapter = ControlProtocolAdapter(self._control_server, clock=self._clock, working_dir=request.project_root)
        return await adapter.launch(
            devices,
            request=request,
            debugging=debugging,
            live_reload=strategy == RunStrategy.LIVE_RELOAD,
        )

    async def _run_session(
        self,
        devices: Sequence[TargetDevice],
        *,
        request: RunRequest,
        strategy: RunStrategy,
        debugging: DebuggingOptions,
    ) -> LaunchResult:
        session = create_session(
            strategy,
            devices,
            request=request,
            debugging=debugging,
            engine=self._engine,
            settings=self._settings,
        )
        logger.info("launching %s in %s mode (%s)", request.target, request.build_info.mode.value, strategy.value)
        label_parts = await timing_label_parts(strategy, request.build_info.mode, devices)
        supervisor = SessionSupervisor(clock=self._clock)
        with reload_signals(session, enabled=request.pid_file is not None):
            return await supervisor.supervise(
                session,
                route=request.route,
                should_build=request.should_build,
                label_parts=label_parts,
            )

    async def _report(self, devices: Sequence[TargetDevice], result: LaunchResult, *, began_at: datetime) -> None:
        # started_at overrides the end time so the timing measures time to interactive.
        ended_at = result.started_at or self._clock()
        elapsed_seconds = max(0.0, (ended_at - began_at).total_seconds())
        await self._reporter.report(
            await usage_path(self.name, devices),
            result,
            elapsed_seconds=elapsed_seconds,
            custom_dimensions=await usage_values(devices),
        )
