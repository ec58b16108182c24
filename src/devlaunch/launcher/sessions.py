"""Live-reload and one-shot sessions driving an execution engine per device."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from pathlib import Path

import aiofiles  # type: ignore[import-untyped]

from devlaunch.launcher.interfaces import ExecutionEngine
from devlaunch.launcher.signal import AppStartedSignal
from devlaunch.launcher.targets import DeviceBuildTarget
from devlaunch.shared.exceptions import EngineError
from devlaunch.shared.models import DebuggingOptions

logger = logging.getLogger(__name__)


class _EngineSession:
    """Shared build/launch/wait plumbing. Subclasses implement ``run``."""

    def __init__(
        self,
        engine: ExecutionEngine,
        targets: Sequence[DeviceBuildTarget],
        *,
        entry_point: str,
        debugging: DebuggingOptions,
        application_binary: str | None = None,
        project_root: str | None = None,
        packages_file: str | None = None,
        ipv6: bool = False,
        stay_resident: bool = True,
    ) -> None:
        self.engine = engine
        self.targets = tuple(targets)
        self.entry_point = entry_point
        self.debugging = debugging
        self.application_binary = application_binary
        self.project_root = project_root
        self.packages_file = packages_file
        self.ipv6 = ipv6
        self.stay_resident = stay_resident

    @property
    def project_dir(self) -> Path:
        return Path(self.project_root) if self.project_root else Path.cwd()

    async def _start(self, *, route: str | None, should_build: bool, trace_startup: bool = False) -> bool:
        """Build (optionally) and launch on every device; False if any step failed."""
        try:
            for target in self.targets:
                if should_build:
                    logger.info("building %s for %s", self.entry_point, target.name)
                    await self.engine.build(target, entry_point=self.entry_point, packages_file=self.packages_file)
                logger.info("launching %s on %s", self.entry_point, target.name)
                await self.engine.launch(
                    target,
                    entry_point=self.entry_point,
                    debugging=self.debugging,
                    route=route,
                    application_binary=self.application_binary,
                    trace_startup=trace_startup,
                    ipv6=self.ipv6,
                )
        except EngineError as exc:
            logger.error("error launching application: %s", exc)
            return False
        return True

    async def _wait_for_exit(self) -> int:
        """Wait for every device; return the first nonzero exit code, else 0."""
        codes = await asyncio.gather(*(self.engine.wait_for_exit(t) for t in self.targets))
        for target, code in zip(self.targets, codes):
            if code != 0:
                logger.warning("application on %s exited with code %d", target.name, code)
                return code
        return 0

    async def _stop(self) -> None:
        await asyncio.gather(*(self.engine.stop(t) for t in self.targets))


class OneShotSession(_EngineSession):
    """Build, launch, and run to completion without incremental updates.

    Implements the ``RunnableSession`` protocol.
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        targets: Sequence[DeviceBuildTarget],
        *,
        entry_point: str,
        debugging: DebuggingOptions,
        application_binary: str | None = None,
        project_root: str | None = None,
        packages_file: str | None = None,
        ipv6: bool = False,
        stay_resident: bool = True,
        trace_startup: bool = False,
    ) -> None:
        super().__init__(
            engine,
            targets,
            entry_point=entry_point,
            debugging=debugging,
            application_binary=application_binary,
            project_root=project_root,
            packages_file=packages_file,
            ipv6=ipv6,
            stay_resident=stay_resident,
        )
        self.trace_startup = trace_startup

    async def run(
        self,
        *,
        app_started: AppStartedSignal,
        route: str | None = None,
        should_build: bool = True,
    ) -> int:
        if not await self._start(route=route, should_build=should_build, trace_startup=self.trace_startup):
            return 1
        app_started.fire()

        if self.stay_resident or self.trace_startup:
            # A traced startup only completes once the app has exited.
            return await self._wait_for_exit()

        await self._stop()
        return 0


class LiveReloadSession(_EngineSession):
    """Keep the app running and push source changes into it.

    Implements the ``RunnableSession`` protocol.
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        targets: Sequence[DeviceBuildTarget],
        *,
        entry_point: str,
        debugging: DebuggingOptions,
        application_binary: str | None = None,
        project_root: str | None = None,
        packages_file: str | None = None,
        ipv6: bool = False,
        stay_resident: bool = True,
        benchmark: bool = False,
        save_compilation_trace: bool = False,
        benchmark_file: str = "refresh_benchmark.json",
        compilation_trace_file: str = "compilation.txt",
    ) -> None:
        super().__init__(
            engine,
            targets,
            entry_point=entry_point,
            debugging=debugging,
            application_binary=application_binary,
            project_root=project_root,
            packages_file=packages_file,
            ipv6=ipv6,
            stay_resident=stay_resident,
        )
        self.benchmark = benchmark
        self.save_compilation_trace = save_compilation_trace
        self.benchmark_file = benchmark_file
        self.compilation_trace_file = compilation_trace_file

    async def run(
        self,
        *,
        app_started: AppStartedSignal,
        route: str | None = None,
        should_build: bool = True,
    ) -> int:
        for target in self.targets:
            if not target.device.supports_live_reload:
                logger.error("hot reload is not supported by %s", target.name)
                return 1

        started = time.monotonic()
        if not await self._start(route=route, should_build=should_build):
            return 1
        app_started.fire()
        startup_ms = int((time.monotonic() - started) * 1000)

        code = 0
        try:
            if self.benchmark:
                await self._run_benchmark(startup_ms)
            elif self.stay_resident:
                code = await self._wait_for_exit()
            await self._save_trace()
        except EngineError as exc:
            logger.error("error during hot session: %s", exc)
            return 1
        finally:
            # The app is only left running when the session stayed attached to it.
            if self.benchmark or not self.stay_resident:
                await self._stop()
        return code

    async def reload(self) -> None:
        """Inject source changes into the running app, keeping its state."""
        await self._restart(full_restart=False)

    async def restart(self) -> None:
        """Restart the app from scratch with the current sources."""
        await self._restart(full_restart=True)

    async def _restart(self, *, full_restart: bool) -> None:
        kind = "restart" if full_restart else "reload"
        logger.info("performing hot %s on %d device(s)", kind, len(self.targets))
        await asyncio.gather(
            *(self.engine.restart(t, entry_point=self.entry_point, full_restart=full_restart) for t in self.targets)
        )

    async def _run_benchmark(self, startup_ms: int) -> None:
        began = time.monotonic()
        await self.restart()
        restart_ms = int((time.monotonic() - began) * 1000)

        began = time.monotonic()
        await self.reload()
        reload_ms = int((time.monotonic() - began) * 1000)

        results = {
            "startupMilliseconds": startup_ms,
            "hotRestartMilliseconds": restart_ms,
            "hotReloadMilliseconds": reload_ms,
        }
        path = self.project_dir / self.benchmark_file
        async with aiofiles.open(path, "w") as f:
            await f.write(json.dumps(results, indent=2))
        logger.info("benchmark data written to %s", path)

    async def _save_trace(self) -> None:
        if not self.save_compilation_trace:
            return
        path = str(self.project_dir / self.compilation_trace_file)
        for target in self.targets:
            await self.engine.save_compilation_trace(target, path)
        logger.info("compilation trace saved to %s", path)
