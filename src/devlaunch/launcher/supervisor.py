"""Run a session to completion and turn its exit code into a LaunchResult."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from devlaunch.devices.interfaces import TargetDevice
from devlaunch.launcher.interfaces import RunnableSession
from devlaunch.launcher.signal import AppStartedSignal
from devlaunch.shared.enums import BuildMode, RunStrategy, SessionState
from devlaunch.shared.exceptions import SessionExitFailure
from devlaunch.shared.models import LaunchResult, utc_now

logger = logging.getLogger(__name__)


async def timing_label_parts(
    strategy: RunStrategy,
    mode: BuildMode,
    devices: Sequence[TargetDevice],
) -> list[str | None]:
    """Return ``[hot|cold, mode, platform|"multiple", "emulator"|None]``."""
    if len(devices) == 1:
        platform: str = (await devices[0].target_platform()).value
        emulator = "emulator" if await devices[0].is_local_emulator() else None
    else:
        platform = "multiple"
        emulator = None
    return [strategy.value, mode.value, platform, emulator]


class SessionSupervisor:
    """Starting → Running (app started signal) → Terminated (run returned).

    The recorded start time, not the time ``run`` returns, becomes the
    result's ``started_at`` so timings measure time to interactive. There is
    no timeout here; the wait ends when the session's ``run`` returns.
    """

    def __init__(self, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self.state = SessionState.STARTING
        self.started_at: datetime | None = None

    def _on_started(self, fired_at: datetime) -> None:
        self.started_at = fired_at
        self.state = SessionState.RUNNING
        logger.info("application started at %s", fired_at.isoformat())

    async def supervise(
        self,
        session: RunnableSession,
        *,
        route: str | None,
        should_build: bool,
        label_parts: Sequence[str | None] = (),
    ) -> LaunchResult:
        """Run ``session`` and map its exit code.

        Raises:
            SessionExitFailure: If the session returned a nonzero exit code.
        """
        app_started = AppStartedSignal(clock=self._clock)
        app_started.add_listener(self._on_started)

        exit_code = await session.run(app_started=app_started, route=route, should_build=should_build)
        self.state = SessionState.TERMINATED

        if exit_code != 0:
            logger.error("session exited with code %d", exit_code)
            raise SessionExitFailure(exit_code)
        return LaunchResult(exit_code=0, started_at=self.started_at, label_parts=tuple(label_parts))
