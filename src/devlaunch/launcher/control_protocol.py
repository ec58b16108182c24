"""Hand the session off to a control-protocol server (``--machine`` mode)."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from devlaunch.devices.interfaces import TargetDevice
from devlaunch.launcher.interfaces import AppHandle, ControlProtocolServer
from devlaunch.shared.exceptions import LaunchFailed, SessionExitFailure, UnsupportedCombination
from devlaunch.shared.models import DebuggingOptions, LaunchResult, RunRequest, utc_now

logger = logging.getLogger(__name__)

DAEMON_LABEL = "daemon"


def ensure_single_device(devices: Sequence[TargetDevice]) -> TargetDevice:
    """Return the only device.

    Raises:
        UnsupportedCombination: If more than one device is present.
    """
    if len(devices) > 1:
        raise UnsupportedCombination("--machine does not support -d all.")
    return devices[0]


class ControlProtocolAdapter:
    """Start the app through a control-protocol server and wait for it to finish.

    Handoff success counts as "started": the timestamp is taken as soon as
    ``start_app`` returns.
    """

    def __init__(
        self,
        server: ControlProtocolServer,
        *,
        clock: Callable[[], datetime] = utc_now,
        working_dir: str | None = None,
    ) -> None:
        self._server = server
        self._clock = clock
        self._working_dir = working_dir

    async def launch(
        self,
        devices: Sequence[TargetDevice],
        *,
        request: RunRequest,
        debugging: DebuggingOptions,
        live_reload: bool,
    ) -> LaunchResult:
        """Delegate startup and supervise the delegated session.

        Raises:
            UnsupportedCombination: If more than one device is present.
            LaunchFailed: If the server failed to start the app.
            SessionExitFailure: If the delegated session reported a nonzero result.
        """
        device = ensure_single_device(devices)
        working_dir = self._working_dir or str(Path.cwd())

        app: AppHandle
        try:
            app = await self._server.start_app(
                device,
                working_dir,
                request.target,
                request.route,
                debugging,
                live_reload,
                application_binary=request.application_binary,
                track_widget_creation=request.track_widget_creation,
                project_root=request.project_root,
                packages_file=request.packages_file,
                output_dill=request.output_dill,
                ipv6=request.ipv6,
            )
        except Exception as exc:
            logger.error("control-protocol server failed to start app on %s: %s", device.name, exc)
            raise LaunchFailed(str(exc)) from exc

        started_at = self._clock()
        logger.info("app handed off to control-protocol server on %s", device.name)

        result = await app.wait_for_app_to_finish()
        if result != 0:
            raise SessionExitFailure(result)
        return LaunchResult(exit_code=0, started_at=started_at, label_parts=(DAEMON_LABEL,))
